"""Token verification entry point owning the key cache and its refresh task."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from jwk_auth.client import DEFAULT_KEYS_URL, JwkFetcher
from jwk_auth.config import FIREBASE_ISSUER_PREFIX, JwkAuthSettings
from jwk_auth.exceptions import KeyFetchError
from jwk_auth.scheduler import (
    DEFAULT_FALLBACK_SECONDS,
    DEFAULT_MIN_REFRESH_SECONDS,
    KeyRefreshScheduler,
)
from jwk_auth.types import Claims
from jwk_auth.verifier import JwkVerifier, VerifierConfig

logger = structlog.get_logger(__name__)


class JwkAuth:
    """Verify provider-issued tokens with a self-refreshing key cache.

    Build instances with ``await JwkAuth.create(...)``: the initial key fetch
    must succeed, otherwise no instance is produced. Call ``aclose()`` (or use
    ``async with``) on shutdown to stop the background refresh.
    """

    def __init__(
        self,
        verifier: JwkVerifier,
        fetcher: JwkFetcher,
        scheduler: KeyRefreshScheduler,
    ) -> None:
        self._verifier = verifier
        self._fetcher = fetcher
        self._scheduler = scheduler

    @classmethod
    async def create(
        cls,
        audience: str,
        issuer: str,
        keys_url: str = DEFAULT_KEYS_URL,
        *,
        leeway_seconds: int = 0,
        fallback_refresh_seconds: float = DEFAULT_FALLBACK_SECONDS,
        min_refresh_seconds: float = DEFAULT_MIN_REFRESH_SECONDS,
        timeout: httpx.Timeout | float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> JwkAuth:
        """Fetch the initial key set and start background refresh.

        Raises KeyFetchError when the initial fetch fails.
        """
        fetcher = JwkFetcher(
            url=keys_url,
            timeout=timeout,
            http_client=http_client,
            default_lifetime=fallback_refresh_seconds,
        )
        try:
            fetched = await fetcher.fetch_keys()
        except KeyFetchError:
            logger.error("jwks_initial_fetch_failed", url=keys_url)
            await fetcher.aclose()
            raise

        verifier = JwkVerifier(
            fetched.keys,
            VerifierConfig(audience=audience, issuer=issuer, leeway_seconds=leeway_seconds),
        )
        scheduler = KeyRefreshScheduler(
            fetcher,
            verifier,
            fallback_seconds=fallback_refresh_seconds,
            min_refresh_seconds=min_refresh_seconds,
        )
        initial_delay = max(fetched.lifetime, min_refresh_seconds)
        scheduler.start(initial_delay)
        logger.info(
            "jwks_loaded",
            key_count=len(fetched.keys),
            next_refresh_seconds=initial_delay,
        )
        return cls(verifier, fetcher, scheduler)

    @classmethod
    async def from_settings(cls, settings: JwkAuthSettings, **kwargs: Any) -> JwkAuth:
        """Create an instance from loaded settings."""
        kwargs.setdefault("timeout", settings.http_timeout_seconds)
        return await cls.create(
            audience=settings.audience,
            issuer=settings.issuer,
            keys_url=settings.url,
            leeway_seconds=settings.leeway_seconds,
            fallback_refresh_seconds=settings.fallback_refresh_seconds,
            min_refresh_seconds=settings.min_refresh_seconds,
            **kwargs,
        )

    @classmethod
    async def for_firebase_project(cls, project_id: str, **kwargs: Any) -> JwkAuth:
        """Create an instance verifying Firebase ID tokens of ``project_id``."""
        return await cls.create(
            audience=project_id,
            issuer=f"{FIREBASE_ISSUER_PREFIX}{project_id}",
            **kwargs,
        )

    @property
    def verifier(self) -> JwkVerifier:
        """Return the verifier holding the current key set."""
        return self._verifier

    @property
    def refreshing(self) -> bool:
        """Whether the background refresh task is alive."""
        return self._scheduler.running

    def verify(self, token: str) -> Claims | None:
        """Return verified claims for ``token`` or None."""
        return self._verifier.verify(token)

    async def aclose(self) -> None:
        """Stop background refresh and release the HTTP client."""
        await self._scheduler.stop()
        await self._fetcher.aclose()

    async def __aenter__(self) -> JwkAuth:
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        """Exit async context manager and stop background refresh."""
        del exc_type, exc, tb
        await self.aclose()
