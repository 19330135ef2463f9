"""Data contract types."""

from __future__ import annotations

from typing import Literal, TypedDict

VerificationFailure = Literal[
    "malformed_token",
    "unknown_key_id",
    "unsupported_algorithm",
    "invalid_signature",
    "token_expired",
    "invalid_audience",
    "invalid_issuer",
    "invalid_claims",
]


class Claims(TypedDict):
    """Decoded payload of a verified token.

    Providers add their own claims (``email``, ``user_id``, ``firebase``...);
    those are kept in the returned mapping alongside the required ones.
    """

    sub: str
    aud: str
    iss: str
    iat: int
    exp: int
