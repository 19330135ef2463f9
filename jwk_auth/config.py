"""Verifier settings and logging configuration."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any, Literal

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jwk_auth.client import DEFAULT_KEYS_URL

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"


class JwkAuthSettings(BaseSettings):
    """Construction-time options loaded from ``JWK_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="JWK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    audience: str = Field(min_length=1)
    issuer: str = Field(min_length=1)
    url: str = DEFAULT_KEYS_URL
    fallback_refresh_seconds: float = Field(default=60.0, gt=0)
    min_refresh_seconds: float = Field(default=1.0, ge=0)
    leeway_seconds: int = Field(default=0, ge=0)
    http_timeout_seconds: float = Field(default=5.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("url")
    @classmethod
    def validate_http_url(cls, value: str) -> str:
        """Ensure the key endpoint is an HTTP(S) URL."""
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must start with 'http://' or 'https://'.")
        return value

    @classmethod
    def for_firebase_project(cls, project_id: str, **overrides: Any) -> JwkAuthSettings:
        """Build settings for ID tokens minted by a Firebase project."""
        return cls(
            audience=project_id,
            issuer=f"{FIREBASE_ISSUER_PREFIX}{project_id}",
            **overrides,
        )


def _standard_log_fields(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Inject required structured logging fields."""
    event_dict.setdefault("component", "jwk-auth")
    event_dict.setdefault("timestamp", datetime.now(UTC).isoformat())
    return event_dict


def configure_structlog(settings: JwkAuthSettings) -> None:
    """Configure structlog for JSON output at the configured level."""
    log_level = getattr(logging, settings.log_level, logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _standard_log_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@lru_cache
def get_settings() -> JwkAuthSettings:
    """Load and cache settings from environment variables."""
    return JwkAuthSettings()  # type: ignore[call-arg]
