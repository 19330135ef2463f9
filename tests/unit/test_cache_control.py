"""Unit tests for Cache-Control max-age parsing."""

from __future__ import annotations

import httpx
import pytest

from jwk_auth.cache_control import get_max_age, parse_max_age
from jwk_auth.exceptions import (
    EmptyMaxAgeValueError,
    MaxAgeParseError,
    NoCacheControlHeaderError,
    NoMaxAgeDirectiveError,
    NonNumericMaxAgeError,
)


def test_parse_max_age_reads_directive_among_others() -> None:
    """max-age is found between unrelated directives."""
    assert parse_max_age("public, max-age=20045, must-revalidate, no-transform") == 20045


@pytest.mark.parametrize(
    "value",
    [
        "max-age=300",
        "no-cache,max-age=300",
        "private ,  MAX-AGE = 300 , immutable",
        "Max-Age=300, max-age=10",
    ],
)
def test_parse_max_age_ignores_order_case_and_whitespace(value: str) -> None:
    """Directive name is case-insensitive, whitespace is trimmed and first match wins."""
    assert parse_max_age(value) == 300


def test_parse_max_age_accepts_zero() -> None:
    """A zero lifetime is a valid value."""
    assert parse_max_age("max-age=0") == 0


def test_parse_max_age_without_directive() -> None:
    """Header without max-age reports the missing directive."""
    with pytest.raises(NoMaxAgeDirectiveError):
        parse_max_age("public, must-revalidate, no-transform")


def test_parse_max_age_does_not_match_s_maxage() -> None:
    """Shared-cache s-maxage is a different directive."""
    with pytest.raises(NoMaxAgeDirectiveError):
        parse_max_age("public, s-maxage=600")


@pytest.mark.parametrize("value", ["public, max-age", "max-age=", "max-age=  , public"])
def test_parse_max_age_with_empty_value(value: str) -> None:
    """max-age without a value reports an empty value."""
    with pytest.raises(EmptyMaxAgeValueError):
        parse_max_age(value)


@pytest.mark.parametrize("value", ["max-age=abc", "max-age=-5", "max-age=1.5", "max-age=12abc"])
def test_parse_max_age_with_non_numeric_value(value: str) -> None:
    """max-age values that are not non-negative integers are rejected."""
    with pytest.raises(NonNumericMaxAgeError):
        parse_max_age(value)


@pytest.mark.parametrize(
    "value", ["max-age=18446744073709551616", "max-age=" + "9" * 400, "max-age=" + "9" * 5000]
)
def test_parse_max_age_with_out_of_range_value(value: str) -> None:
    """Lifetimes beyond an unsigned 64-bit count are rejected like other bad numbers."""
    with pytest.raises(NonNumericMaxAgeError):
        parse_max_age(value)


def test_parse_max_age_accepts_largest_value() -> None:
    """The unsigned 64-bit maximum still parses."""
    assert parse_max_age("max-age=18446744073709551615") == 2**64 - 1


def test_get_max_age_reads_header_case_insensitively() -> None:
    """Header lookup works regardless of the header name casing."""
    headers = httpx.Headers({"Cache-Control": "public, max-age=120"})

    assert get_max_age(headers) == 120


def test_get_max_age_without_header() -> None:
    """Missing Cache-Control header is reported distinctly."""
    with pytest.raises(NoCacheControlHeaderError) as exc_info:
        get_max_age(httpx.Headers({"content-type": "application/json"}))

    assert isinstance(exc_info.value, MaxAgeParseError)
