"""FastAPI dependencies for handlers behind JWTAuthMiddleware."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from jwk_auth.types import Claims


def get_current_claims(request: Request) -> Claims:
    """Return verified claims set by JWTAuthMiddleware."""
    claims = getattr(request.state, "claims", None)
    if not isinstance(claims, dict):
        raise HTTPException(status_code=401, detail="Invalid token.")
    return claims  # type: ignore[return-value]


def get_current_subject(claims: Annotated[Claims, Depends(get_current_claims)]) -> str:
    """Return the ``sub`` claim of the verified token, the provider's user id."""
    return str(claims["sub"])
