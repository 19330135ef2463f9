"""Exception hierarchy for key fetching and token verification."""

from __future__ import annotations


class JwkAuthError(Exception):
    """Base class for all package-specific exceptions."""


class KeyFetchError(JwkAuthError):
    """Raised when the provider key set could not be obtained."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        """Initialize with optional HTTP status code context."""
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class KeyRequestError(KeyFetchError):
    """Raised when the key endpoint is unreachable, times out, or answers with an error."""


class KeyResponseBodyError(KeyFetchError):
    """Raised when the key endpoint returns a body that is not a JWKS document."""


class MaxAgeParseError(JwkAuthError):
    """Base class for Cache-Control max-age parsing failures."""


class NoCacheControlHeaderError(MaxAgeParseError):
    """The response carries no Cache-Control header."""


class NoMaxAgeDirectiveError(MaxAgeParseError):
    """The Cache-Control header has no max-age directive."""


class EmptyMaxAgeValueError(MaxAgeParseError):
    """The max-age directive has no value."""


class NonNumericMaxAgeError(MaxAgeParseError):
    """The max-age value is not a non-negative integer."""


class TokenVerificationError(JwkAuthError):
    """Raised internally when a token fails one of the verification checks."""

    def __init__(self, detail: str, code: str) -> None:
        """Initialize with diagnostic detail and machine-readable code."""
        super().__init__(detail)
        self.detail = detail
        self.code = code
