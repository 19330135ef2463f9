"""Async HTTP client for the provider's published key endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from jwk_auth.cache_control import get_max_age
from jwk_auth.exceptions import KeyRequestError, KeyResponseBodyError, MaxAgeParseError
from jwk_auth.keyset import KeySet
from jwk_auth.schemas import KeyResponse

DEFAULT_KEYS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)
DEFAULT_LIFETIME_SECONDS = 60.0
DEFAULT_TIMEOUT = httpx.Timeout(connect=2.0, read=5.0, write=5.0, pool=5.0)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FetchedKeys:
    """Key set obtained by one fetch and how long it stays fresh."""

    keys: KeySet
    lifetime: float


class JwkFetcher:
    """Fetch the provider JWKS together with its Cache-Control lifetime."""

    def __init__(
        self,
        url: str = DEFAULT_KEYS_URL,
        timeout: httpx.Timeout | float | None = None,
        http_client: httpx.AsyncClient | None = None,
        default_lifetime: float = DEFAULT_LIFETIME_SECONDS,
    ) -> None:
        """Create fetcher with bounded timeouts and optional injected transport."""
        self.url = url
        self._default_lifetime = default_lifetime
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout or DEFAULT_TIMEOUT)

    async def fetch_keys(self) -> FetchedKeys:
        """Fetch the key set once and derive its freshness lifetime."""
        response = await self._request()
        lifetime = self._lifetime(response)
        try:
            payload = KeyResponse.model_validate(self._json_body(response))
        except ValidationError as exc:
            raise KeyResponseBodyError(
                "Invalid JWKS response payload.", response.status_code
            ) from exc
        return FetchedKeys(keys=KeySet(payload.keys), lifetime=lifetime)

    async def aclose(self) -> None:
        """Close underlying HTTP client if owned by this instance."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> JwkFetcher:
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        """Exit async context manager and close managed resources."""
        del exc_type, exc, tb
        await self.aclose()

    async def _request(self) -> httpx.Response:
        """Execute the GET and normalize transport and status failures."""
        try:
            response = await self._client.get(self.url)
        except httpx.RequestError as exc:
            raise KeyRequestError("Key endpoint unavailable.") from exc

        if response.status_code >= 400:
            raise KeyRequestError(
                f"Key endpoint request failed with status {response.status_code}.",
                response.status_code,
            )
        return response

    def _lifetime(self, response: httpx.Response) -> float:
        """Return max-age seconds, or the default when the header does not say."""
        try:
            return float(get_max_age(response.headers))
        except MaxAgeParseError as exc:
            logger.debug(
                "jwks_max_age_fallback",
                reason=type(exc).__name__,
                lifetime_seconds=self._default_lifetime,
            )
            return self._default_lifetime

    @staticmethod
    def _json_body(response: httpx.Response) -> Any:
        """Return decoded response JSON."""
        try:
            return response.json()
        except ValueError as exc:
            raise KeyResponseBodyError(
                "Key endpoint returned invalid JSON.", response.status_code
            ) from exc
