"""Shared fixtures: RSA signing material, token builder and a mocked key endpoint."""

from __future__ import annotations

import base64
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

from jwk_auth.verifier import VerifierConfig

AUDIENCE = "demo-project"
ISSUER = "https://securetoken.google.com/demo-project"
CACHE_CONTROL = "public, max-age=20045, must-revalidate, no-transform"


def _base64url_uint(value: int) -> str:
    """Encode integer in URL-safe base64 without padding."""
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@dataclass(frozen=True)
class SigningKey:
    """RSA private key plus its published JWK entry."""

    kid: str
    private_pem: str
    jwk: dict[str, str]

    def sign(self, claims: dict[str, Any] | None = None, kid: str | None = None) -> str:
        """Build a token signed with this key; ``claims`` override the defaults."""
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": "user-1",
            "aud": AUDIENCE,
            "iss": ISSUER,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=5)).timestamp()),
        }
        payload.update(claims or {})
        payload = {key: value for key, value in payload.items() if value is not None}
        return jwt.encode(
            payload,
            self.private_pem,
            algorithm=self.jwk["alg"],
            headers={"kid": kid or self.kid},
        )


def _generate_signing_key(kid: str) -> SigningKey:
    """Generate RSA private PEM and matching JWKS key entry."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_numbers = private_key.public_key().public_numbers()
    jwk = {
        "kty": "RSA",
        "alg": "RS256",
        "use": "sig",
        "kid": kid,
        "n": _base64url_uint(public_numbers.n),
        "e": _base64url_uint(public_numbers.e),
    }
    return SigningKey(kid=kid, private_pem=private_pem, jwk=jwk)


@pytest.fixture(scope="session")
def signing_keys() -> dict[str, SigningKey]:
    """Three ephemeral keys: kid-0 and kid-1 are published, kid-9 never is."""
    return {kid: _generate_signing_key(kid) for kid in ("kid-0", "kid-1", "kid-9")}


@dataclass
class KeyEndpoint:
    """Mutable stand-in for the provider key endpoint."""

    keys: list[dict[str, str]]
    cache_control: str | None = CACHE_CONTROL
    fail_with: Exception | None = None
    status_code: int = 200
    calls: int = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        """Serve the configured JWKS document."""
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        headers = {"cache-control": self.cache_control} if self.cache_control else {}
        return httpx.Response(
            status_code=self.status_code,
            json={"keys": self.keys},
            headers=headers,
        )


@pytest.fixture
def key_endpoint(signing_keys: dict[str, SigningKey]) -> KeyEndpoint:
    """Key endpoint publishing kid-0 and kid-1."""
    return KeyEndpoint(keys=[signing_keys["kid-0"].jwk, signing_keys["kid-1"].jwk])


@pytest.fixture
def http_client_factory() -> Callable[[Callable[..., Any]], httpx.AsyncClient]:
    """Build AsyncClients routed through httpx.MockTransport."""

    def build(handler: Callable[..., Any]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return build


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Keep logging configuration from leaking between tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def verifier_config() -> VerifierConfig:
    """Validation parameters matching the tokens built by SigningKey.sign."""
    return VerifierConfig(audience=AUDIENCE, issuer=ISSUER)
