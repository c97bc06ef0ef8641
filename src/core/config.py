"""Application configuration and .env loading."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized runtime configuration."""

    data_dir: str = Field(default="data/scriptvault", validation_alias="SCRIPTVAULT_DATA_DIR")
    database_path: str | None = Field(
        default=None, validation_alias="SCRIPTVAULT_DATABASE_PATH"
    )
    public_base_url: str = Field(
        default="http://localhost:8000", validation_alias="SCRIPTVAULT_PUBLIC_BASE_URL"
    )
    signing_secret: str = Field(
        default="dev-signing-secret", validation_alias="SCRIPTVAULT_SIGNING_SECRET"
    )

    scripts_bucket: str = Field(default="scripts", validation_alias="S3_BUCKET_SCRIPTS")
    perusal_bucket: str = Field(default="perusal", validation_alias="S3_BUCKET_PERUSAL")
    temp_bucket: str | None = Field(default=None, validation_alias="S3_BUCKET_TEMP")

    download_url_ttl_seconds: int = Field(
        default=3600, ge=1, validation_alias="DOWNLOAD_URL_TTL_SECONDS"
    )
    perusal_max_pages: int = Field(default=10, ge=1, validation_alias="PERUSAL_MAX_PAGES")
    perusal_request_ttl_days: int = Field(
        default=7, ge=1, validation_alias="PERUSAL_REQUEST_TTL_DAYS"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024, ge=1, validation_alias="MAX_UPLOAD_BYTES"
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def resolved_temp_bucket(self) -> str:
        return self.temp_bucket or self.scripts_bucket

    @property
    def resolved_database_path(self) -> Path:
        if self.database_path:
            return Path(self.database_path)
        return Path(self.data_dir) / "metadata.sqlite"

    @property
    def blobs_dir(self) -> Path:
        return Path(self.data_dir) / "blobs"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once from .env/environment."""
    return Settings()


__all__ = ["Settings", "get_settings"]
