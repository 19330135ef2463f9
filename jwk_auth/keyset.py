"""Immutable kid -> key mapping replaced wholesale on every refresh."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from jwk_auth.schemas import Jwk


class KeySet(Mapping[str, Jwk]):
    """Read-only snapshot of the provider keys, indexed by key id."""

    __slots__ = ("_keys",)

    def __init__(self, keys: Iterable[Jwk] = ()) -> None:
        # Duplicate kids resolve to the last entry in the published list.
        by_kid: dict[str, Jwk] = {}
        for key in keys:
            by_kid[key.kid] = key
        self._keys = MappingProxyType(by_kid)

    def __getitem__(self, kid: str) -> Jwk:
        """Return the key published under ``kid``."""
        return self._keys[kid]

    def __iter__(self) -> Iterator[str]:
        """Iterate over key ids."""
        return iter(self._keys)

    def __len__(self) -> int:
        """Return the number of distinct key ids."""
        return len(self._keys)

    def __repr__(self) -> str:
        """Show key ids only."""
        return f"KeySet(kids={sorted(self._keys)!r})"
