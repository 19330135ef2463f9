"""Starlette middleware verifying bearer tokens with a JwkAuth instance."""

from __future__ import annotations

import hmac

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from jwk_auth.auth import JwkAuth


def _error_response() -> JSONResponse:
    """Build the single unauthorized response; the failed check is not disclosed."""
    return JSONResponse(
        status_code=401, content={"detail": "Invalid token.", "code": "invalid_token"}
    )


def extract_bearer_token(authorization: str | None) -> str | None:
    """Extract bearer token from an Authorization header value."""
    authorization = (authorization or "").strip()
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if not hmac.compare_digest(scheme.lower(), "bearer"):
        return None
    stripped = token.strip()
    return stripped or None


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """Verify bearer tokens locally and inject claims into request state."""

    def __init__(self, app, jwk_auth: JwkAuth, exempt_paths: frozenset[str] = frozenset()) -> None:
        """Initialize middleware with a ready JwkAuth instance."""
        super().__init__(app)
        self._jwk_auth = jwk_auth
        self._exempt_paths = exempt_paths

    async def dispatch(self, request: Request, call_next) -> Response:
        """Verify token and expose claims as ``request.state.claims``."""
        if request.url.path in self._exempt_paths:
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("authorization"))
        if token is None:
            return _error_response()

        claims = self._jwk_auth.verify(token)
        if claims is None:
            return _error_response()

        request.state.claims = claims
        return await call_next(request)
