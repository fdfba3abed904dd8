"""Main application entrypoint for FileDrop."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from filedrop.api.errors import register_exception_handlers
from filedrop.api.v1 import routes_health
from filedrop.api.v1.routes_files import router as files_router
from filedrop.api.v1.routes_ui import ui_router
from filedrop.core.config import Settings, settings
from filedrop.core.logging import setup_logging
from filedrop.core.middleware import HTTPErrorLoggingMiddleware
from filedrop.registry.file_registry import FileRegistry
from filedrop.storage.factory import get_blob_store

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The blob store and the registry are built here and owned by the app;
    the registry snapshot is loaded before the first request.

    Args:
        app_settings: Settings to use instead of the environment singleton

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app_settings = app_settings or settings

    # Initialize logging first
    setup_logging()

    app = FastAPI(
        title=app_settings.SERVICE_NAME,
        version=app_settings.SERVICE_VERSION,
    )

    app.state.settings = app_settings
    app.state.blob_store = get_blob_store(app_settings)
    app.state.registry = FileRegistry(app_settings.REGISTRY_PATH)
    app.state.registry.load()

    app.add_middleware(HTTPErrorLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    register_exception_handlers(app)

    # Register routers
    app.include_router(routes_health.router, tags=["health"])
    app.include_router(files_router)
    if app_settings.UI_ENABLED:
        app.include_router(ui_router)

    logger.info(
        f"{app_settings.SERVICE_NAME} ready: upload_dir={app_settings.UPLOAD_DIR}, "
        f"registry={app_settings.REGISTRY_PATH}, files={len(app.state.registry)}"
    )
    return app


# Export app instance for ASGI servers
app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
