"""Public package exports."""

from jwk_auth.auth import JwkAuth
from jwk_auth.cache_control import get_max_age, parse_max_age
from jwk_auth.client import DEFAULT_KEYS_URL, JwkFetcher
from jwk_auth.config import JwkAuthSettings
from jwk_auth.keyset import KeySet
from jwk_auth.schemas import Jwk
from jwk_auth.scheduler import KeyRefreshScheduler
from jwk_auth.types import Claims
from jwk_auth.verifier import JwkVerifier, VerifierConfig

__all__ = [
    "DEFAULT_KEYS_URL",
    "Claims",
    "Jwk",
    "JwkAuth",
    "JwkAuthSettings",
    "JwkFetcher",
    "JwkVerifier",
    "KeyRefreshScheduler",
    "KeySet",
    "VerifierConfig",
    "get_max_age",
    "parse_max_age",
]
