"""Configuration utilities for the DocPortal backend."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .paths import DEFAULT_UPLOAD_DIR, ROOT

PROJECT_ROOT = ROOT
DEFAULT_MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MiB
DEFAULT_PORT = 3001


def _env_flag(name: str, default: bool) -> bool:
    """Return a boolean flag derived from environment variables."""

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str = "") -> Tuple[str, ...]:
    """Return a tuple parsed from a comma-delimited environment variable."""

    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _load_environment() -> None:
    """Load environment variables from a ``.env`` file if present."""

    explicit_path = os.getenv("DOCPORTAL_ENV_FILE")
    candidates = []

    if explicit_path:
        candidates.append(Path(explicit_path))

    candidates.append(PROJECT_ROOT / ".env")

    for candidate in candidates:
        try_path = candidate.expanduser()
        if try_path.exists():
            load_dotenv(try_path, override=False)


_load_environment()


def _database_url_default() -> str:
    """Return the configured database URL using legacy fallbacks."""

    return os.getenv("DATABASE_URL") or os.getenv("DB_URL") or "sqlite:///./documents.db"


def _cors_origin_regex_default() -> str | None:
    """Return the default CORS origin regex allowing local network hosts."""

    raw = os.getenv(
        "CORS_ALLOW_ORIGIN_REGEX",
        r"http://(?:localhost|127\.0\.0\.1|0\.0\.0\.0|(?:\d{1,3}\.){3}\d{1,3})(?::\d{1,5})?",
    )
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


class Settings(BaseModel):
    """Application configuration loaded from environment variables."""

    model_config = ConfigDict(validate_default=True)

    database_url: str = Field(default_factory=_database_url_default)
    upload_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("UPLOAD_DIR", str(DEFAULT_UPLOAD_DIR)))
    )
    max_upload_size: int = Field(
        default_factory=lambda: int(
            os.getenv("MAX_UPLOAD_SIZE", str(DEFAULT_MAX_UPLOAD_SIZE))
        )
    )
    allowed_mimetypes: Tuple[str, ...] = Field(
        default_factory=lambda: _env_list("ALLOWED_MIMETYPES", "application/pdf")
    )
    verify_pdf_signature: bool = Field(
        default_factory=lambda: _env_flag("VERIFY_PDF_SIGNATURE", False)
    )
    cors_allow_origins: Tuple[str, ...] = Field(
        default_factory=lambda: _env_list("CORS_ALLOW_ORIGINS")
    )
    cors_allow_origin_regex: str | None = Field(default_factory=_cors_origin_regex_default)
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", str(DEFAULT_PORT))))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "info"))

    @field_validator("upload_dir", mode="after")
    @classmethod
    def _ensure_upload_dir(cls, value: Path) -> Path:
        value.mkdir(parents=True, exist_ok=True)
        return value

    @field_validator("max_upload_size", mode="after")
    @classmethod
    def _positive_upload_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("MAX_UPLOAD_SIZE must be a positive integer")
        return value

    @field_validator("allowed_mimetypes", mode="after")
    @classmethod
    def _normalise_mimetypes(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not value:
            return ("application/pdf",)
        return tuple(dict.fromkeys(item.lower() for item in value))

    @field_validator("log_level", mode="after")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        return value.strip().lower() or "info"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached settings so that subsequent calls reload from the environment."""

    get_settings.cache_clear()
