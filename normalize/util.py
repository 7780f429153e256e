"""
Normalization utility helpers.
Identity-keyed mapping used wherever contributor ids or names are compared.
"""
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple


def identity_key(name: str) -> str:
    """Comparison key for a contributor id or display name."""
    return str(name).casefold()


class CaseInsensitiveDict(MutableMapping):
    """Dict keyed by strings compared case-insensitively.

    The casing used the first time a key is stored is kept as the canonical key;
    later assignments through a differently-cased key update the value only.
    """

    def __init__(self, data: Optional[Any] = None, **kwargs):
        self._store: Dict[str, Tuple[str, Any]] = {}
        if data is not None:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    def __setitem__(self, key: str, value: Any):
        k = identity_key(key)
        existing = self._store.get(k)
        canonical = existing[0] if existing else key
        self._store[k] = (canonical, value)

    def __getitem__(self, key: str) -> Any:
        return self._store[identity_key(key)][1]

    def __delitem__(self, key: str):
        del self._store[identity_key(key)]

    def __iter__(self) -> Iterator[str]:
        return (canonical for canonical, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return identity_key(key) in self._store

    def canonical(self, key: str) -> Optional[str]:
        """Return the stored casing for key, or None when absent."""
        entry = self._store.get(identity_key(key))
        return entry[0] if entry else None

    def copy(self) -> 'CaseInsensitiveDict':
        return CaseInsensitiveDict(self.items())

    def __eq__(self, other):
        if isinstance(other, CaseInsensitiveDict):
            other_items = {k: v for k, (_, v) in other._store.items()}
        elif isinstance(other, Mapping):
            other_items = {identity_key(k): v for k, v in other.items()}
        else:
            return NotImplemented
        return {k: v for k, (_, v) in self._store.items()} == other_items

    def __repr__(self):
        return f"CaseInsensitiveDict({dict(self.items())!r})"


def missing_identities(wanted: Iterable[str], present: Iterable[str]) -> list:
    """Entries of wanted that match nothing in present, compared case-insensitively."""
    present_keys = {identity_key(p) for p in present}
    return [w for w in wanted if identity_key(w) not in present_keys]
