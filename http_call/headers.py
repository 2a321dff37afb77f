"""Case-insensitive header mapping."""

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any


def _lower(key: Any) -> Any:
    return key.lower() if isinstance(key, str) else key


class CaseInsensitiveHeaders(MutableMapping[str, str]):
    """Header mapping that normalizes every key to lowercase.

    Reads, writes, deletes and membership checks all lowercase the key
    first, so ``headers["Content-Type"]`` and ``headers["content-type"]``
    address the same entry. When two keys collide the last write wins.
    """

    def __init__(
        self,
        data: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
    ) -> None:
        """Initialize the mapping.

        Args:
            data: Initial headers, as a mapping or (name, value) pairs.
                Entries whose value is None are skipped.
        """
        self._store: dict[str, str] = {}
        if data is None:
            return
        items = data.items() if isinstance(data, Mapping) else data
        for key, value in items:
            if value is None:
                continue
            self[key] = value

    def __getitem__(self, key: str) -> str:
        return self._store[_lower(key)]

    def __setitem__(self, key: str, value: Any) -> None:
        self._store[_lower(key)] = str(value)

    def __delitem__(self, key: str) -> None:
        del self._store[_lower(key)]

    def __contains__(self, key: object) -> bool:
        return _lower(key) in self._store

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._store!r})"

    def copy(self) -> "CaseInsensitiveHeaders":
        """Return a shallow copy."""
        return CaseInsensitiveHeaders(self._store)

    def to_dict(self) -> dict[str, str]:
        """Return a plain dict with lowercase keys."""
        return dict(self._store)


def lowercase_headers(
    *sources: Mapping[str, Any] | None,
) -> CaseInsensitiveHeaders:
    """Merge header mappings into one case-insensitive mapping.

    Later sources override earlier ones regardless of key case.

    Args:
        *sources: Header mappings, applied in order. None is ignored.

    Returns:
        Merged CaseInsensitiveHeaders.
    """
    merged = CaseInsensitiveHeaders()
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            if value is None:
                continue
            merged[key] = value
    return merged
