"""Process-wide gem name to id cache used during bulk ingestion."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .locking import CriticalSection, MutexSection

_CACHE_KEY = "name-cache"


class NameCache:
    """Maps gem names to store ids.

    The store stays the source of truth: a miss always goes to the loader and
    only then populates the cache.
    """

    def __init__(self, section: CriticalSection | None = None) -> None:
        self._section = section or MutexSection()
        self._ids: Dict[str, int] = {}

    def get(self, name: str) -> Optional[int]:
        with self._section.hold(_CACHE_KEY):
            return self._ids.get(name)

    def resolve(self, name: str, loader: Callable[[str], int]) -> int:
        """Return the cached id for ``name`` or load, cache and return it."""

        with self._section.hold(_CACHE_KEY):
            cached = self._ids.get(name)
            if cached is not None:
                return cached
            gem_id = loader(name)
            self._ids[name] = gem_id
            return gem_id

    def evict(self, name: str) -> None:
        with self._section.hold(_CACHE_KEY):
            self._ids.pop(name, None)

    def clear(self) -> None:
        with self._section.hold(_CACHE_KEY):
            self._ids.clear()

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, name: object) -> bool:
        return name in self._ids


__all__ = ["NameCache"]
