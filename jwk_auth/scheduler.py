"""Background task keeping the verifier's key set current."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Protocol

import structlog

from jwk_auth.client import FetchedKeys
from jwk_auth.exceptions import KeyFetchError
from jwk_auth.verifier import JwkVerifier

DEFAULT_FALLBACK_SECONDS = 60.0
DEFAULT_MIN_REFRESH_SECONDS = 1.0

logger = structlog.get_logger(__name__)


class KeyFetcher(Protocol):
    """Anything able to fetch a fresh key set."""

    async def fetch_keys(self) -> FetchedKeys: ...


class KeyRefreshScheduler:
    """Repeatedly fetch keys and install them, sleeping for the fetched lifetime."""

    def __init__(
        self,
        fetcher: KeyFetcher,
        verifier: JwkVerifier,
        fallback_seconds: float = DEFAULT_FALLBACK_SECONDS,
        min_refresh_seconds: float = DEFAULT_MIN_REFRESH_SECONDS,
    ) -> None:
        self._fetcher = fetcher
        self._verifier = verifier
        self._fallback_seconds = fallback_seconds
        self._min_refresh_seconds = min_refresh_seconds
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """True while the refresh task is alive."""
        return self._task is not None and not self._task.done()

    def start(self, initial_delay: float) -> None:
        """Spawn the refresh loop; the first fetch happens after ``initial_delay``."""
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(initial_delay), name="jwks-refresh")

    async def stop(self) -> None:
        """Signal the loop to exit and wait until it has."""
        self._stop_event.set()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def refresh_once(self) -> float:
        """Run one fetch-then-install cycle and return the delay before the next one."""
        try:
            fetched = await self._fetcher.fetch_keys()
        except KeyFetchError as exc:
            logger.warning(
                "jwks_refresh_failed",
                error=type(exc).__name__,
                detail=exc.detail,
                retry_in_seconds=self._fallback_seconds,
            )
            return self._fallback_seconds

        self._verifier.install(fetched.keys)
        delay = max(fetched.lifetime, self._min_refresh_seconds)
        logger.info("jwks_refreshed", key_count=len(fetched.keys), next_refresh_seconds=delay)
        return delay

    async def _run(self, initial_delay: float) -> None:
        """Loop until stopped; failed cycles retry after the fallback delay."""
        delay = initial_delay
        while not await self._sleep(delay):
            try:
                delay = await self.refresh_once()
            except Exception:
                logger.exception("jwks_refresh_crashed", retry_in_seconds=self._fallback_seconds)
                delay = self._fallback_seconds

    async def _sleep(self, seconds: float) -> bool:
        """Sleep for ``seconds``; return True when stop was requested meanwhile."""
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        return self._stop_event.is_set()
