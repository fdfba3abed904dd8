"""Configuration management for FileDrop."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    ENV: str = "local"
    SERVICE_NAME: str = "filedrop"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # Storage Configuration
    STORAGE_BACKEND: str = "local"  # only "local" is supported
    UPLOAD_DIR: str = "data/uploads"
    REGISTRY_PATH: str = "data/fileMap.json"
    DOWNLOAD_CHUNK_SIZE: int = 65536  # 64KB chunks

    # HTTP
    CORS_ALLOW_ORIGINS: str = "*"  # Comma-separated
    UI_ENABLED: bool = True

    @property
    def cors_allow_origins(self) -> list[str]:
        """Parse CORS_ALLOW_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]


# Singleton settings instance
settings = Settings()
