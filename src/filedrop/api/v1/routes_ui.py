"""Browser UI route."""

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

ui_router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "ui" / "templates"))


@ui_router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index_page(request: Request):
    """Serve the upload and file list page."""
    settings = request.app.state.settings
    return templates.TemplateResponse(
        request,
        "index.html",
        {"service_name": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION},
    )
