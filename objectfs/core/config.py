from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = "ObjectFS API"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    storage_backend: Literal["s3", "local"] = "s3"

    # S3-compatible backend (MinIO by default)
    s3_endpoint_url: str | None = "http://localhost:9000"
    s3_region: str = "us-east-1"
    s3_access_key: str = "objectfs_minio"
    s3_secret_key: str = "objectfs_minio_secret"
    s3_bucket: str = "objectfs"
    s3_create_bucket: bool = True
    s3_connect_timeout_seconds: float = 5.0
    s3_read_timeout_seconds: float = 30.0
    s3_max_attempts: int = 3  # retries happen inside botocore, never in the translator

    # Local filesystem backend
    local_storage_root: str = "./data"

    # Startup readiness probe
    startup_max_attempts: int = 5
    startup_initial_delay_seconds: float = 1.0

    cors_allowed_origins: str | list[str] = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="OBJECTFS_",
        extra="ignore",
    )

    @property
    def resolved_cors_allowed_origins(self) -> list[str]:
        """Return the configured CORS origins as a normalized list."""

        if isinstance(self.cors_allowed_origins, str):
            return [
                origin.strip()
                for origin in self.cors_allowed_origins.split(",")
                if origin.strip()
            ]

        return list(self.cors_allowed_origins)


@lru_cache
def get_settings() -> Settings:
    """Cache settings to avoid re-parsing environment files."""
    return Settings()
