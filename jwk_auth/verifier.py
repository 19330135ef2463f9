"""Local RS* JWT verification against the cached provider key set."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

import structlog
from jose import jwt
from jose.constants import ALGORITHMS
from jose.exceptions import ExpiredSignatureError, JOSEError, JWTClaimsError

from jwk_auth.exceptions import TokenVerificationError
from jwk_auth.keyset import KeySet
from jwk_auth.schemas import Jwk
from jwk_auth.types import Claims, VerificationFailure

SUPPORTED_ALGORITHMS = frozenset(ALGORITHMS.RSA_DS)
REQUIRED_CLAIMS = ("sub", "aud", "iss", "iat", "exp")

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VerifierConfig:
    """Validation parameters fixed for the lifetime of a verifier."""

    audience: str
    issuer: str
    leeway_seconds: int = 0


def _fail(code: VerificationFailure, detail: str = "Invalid token.") -> TokenVerificationError:
    """Build the internal error carrying a failure code."""
    return TokenVerificationError(detail, code)


class JwkVerifier:
    """Verify tokens against the current key set; the key set is swapped on refresh."""

    def __init__(self, keys: KeySet, config: VerifierConfig) -> None:
        self._keys = keys
        self._config = config
        self._lock = threading.Lock()

    @property
    def config(self) -> VerifierConfig:
        """Return the audience, issuer and leeway this verifier enforces."""
        return self._config

    @property
    def keys(self) -> KeySet:
        """Return the key set currently installed."""
        with self._lock:
            return self._keys

    def get_key(self, kid: str) -> Jwk | None:
        """Return the current key for ``kid``, if any."""
        with self._lock:
            return self._keys.get(kid)

    def install(self, keys: KeySet) -> None:
        """Replace the whole key set; in-flight verifications keep their snapshot."""
        with self._lock:
            self._keys = keys

    def verify(self, token: str) -> Claims | None:
        """Return decoded claims for a valid token, otherwise None.

        Every failure reason collapses to None. The reason is only logged.
        """
        try:
            return self.verify_or_raise(token)
        except TokenVerificationError as exc:
            logger.debug("token_verification_failed", code=exc.code)
            return None

    def verify_or_raise(self, token: str) -> Claims:
        """Verify token and raise TokenVerificationError naming the failed check."""
        kid = self._unverified_kid(token)
        key = self.get_key(kid)
        if key is None:
            raise _fail("unknown_key_id")
        if key.kty != "RSA" or key.alg not in SUPPORTED_ALGORITHMS:
            raise _fail("unsupported_algorithm")
        return self._decode_token_with_key(token, key)

    @staticmethod
    def _unverified_kid(token: str) -> str:
        """Read the key id from the token header without checking the signature."""
        if not isinstance(token, str) or not token:
            raise _fail("malformed_token")
        try:
            header = jwt.get_unverified_header(token)
        except JOSEError as exc:
            raise _fail("malformed_token") from exc
        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise _fail("malformed_token")
        return kid

    def _decode_token_with_key(self, token: str, key: Jwk) -> Claims:
        """Check signature, audience, issuer and expiry with one key."""
        # Audience, issuer and presence are checked by _check_claims so each
        # failure keeps its own code.
        options: dict[str, Any] = {
            "verify_aud": False,
            "verify_iss": False,
            "verify_at_hash": False,
            "leeway": self._config.leeway_seconds,
        }
        try:
            claims = jwt.decode(token, key.model_dump(), algorithms=[key.alg], options=options)
        except ExpiredSignatureError as exc:
            raise _fail("token_expired", "Token has expired.") from exc
        except JWTClaimsError as exc:
            raise _fail("invalid_claims", "Invalid claims.") from exc
        except JOSEError as exc:
            raise _fail("invalid_signature") from exc
        except (TypeError, ValueError, OverflowError) as exc:
            # jose coerces exp/iat/nbf with int(); lists, objects and infinities escape it.
            raise _fail("invalid_claims", "Invalid claims.") from exc
        self._check_claims(claims)
        return claims  # type: ignore[return-value]

    def _check_claims(self, claims: dict[str, Any]) -> None:
        """Require the identity claims and match audience and issuer."""
        missing = [name for name in REQUIRED_CLAIMS if claims.get(name) is None]
        if missing:
            raise _fail("invalid_claims", "Invalid claims.")
        audience = claims["aud"]
        audiences = audience if isinstance(audience, list) else [audience]
        if self._config.audience not in audiences:
            raise _fail("invalid_audience", "Invalid audience.")
        if claims["iss"] != self._config.issuer:
            raise _fail("invalid_issuer", "Invalid issuer.")
