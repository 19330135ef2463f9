"""Cache-Control max-age extraction for the key endpoint response."""

from __future__ import annotations

from collections.abc import Mapping

from jwk_auth.exceptions import (
    EmptyMaxAgeValueError,
    NoCacheControlHeaderError,
    NoMaxAgeDirectiveError,
    NonNumericMaxAgeError,
)

MAX_AGE_DIRECTIVE = "max-age"
# Largest unsigned 64-bit value; longer lifetimes are rejected like any other bad number.
MAX_AGE_LIMIT = 2**64 - 1


def parse_max_age(value: str) -> int:
    """Return the max-age seconds declared in a Cache-Control header value."""
    for directive in value.split(","):
        name, separator, raw_seconds = directive.partition("=")
        if name.strip().lower() != MAX_AGE_DIRECTIVE:
            continue
        seconds = raw_seconds.strip()
        if not separator or not seconds:
            raise EmptyMaxAgeValueError("max-age directive has no value.")
        if not seconds.isascii() or not seconds.isdigit():
            raise NonNumericMaxAgeError(f"max-age value {seconds[:32]!r} is not numeric.")
        if len(seconds) > len(str(MAX_AGE_LIMIT)) or int(seconds) > MAX_AGE_LIMIT:
            raise NonNumericMaxAgeError("max-age value is out of range.")
        return int(seconds)
    raise NoMaxAgeDirectiveError("Cache-Control header has no max-age directive.")


def get_max_age(headers: Mapping[str, str]) -> int:
    """Read Cache-Control from response headers and return its max-age seconds.

    ``headers`` is expected to be case-insensitive, as ``httpx.Headers`` is.
    """
    cache_control = headers.get("cache-control")
    if cache_control is None:
        raise NoCacheControlHeaderError("Response has no Cache-Control header.")
    return parse_max_age(cache_control)
