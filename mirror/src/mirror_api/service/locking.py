"""Critical sections used to serialize ingestion writes."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Protocol


class CriticalSection(Protocol):
    def hold(self, key: str) -> Iterator[None]:
        """Context manager that excludes other holders of ``key``."""
        ...


class MutexSection:
    """One lock for every key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._lock:
            yield


class KeyedMutexSection:
    """One lock per key; unrelated keys never wait on each other."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._lock_for(key):
            yield


class PassThroughSection:
    """No exclusion; for single-threaded callers and tests."""

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        yield


def build_critical_section(mode: str) -> CriticalSection:
    if mode == "global":
        return MutexSection()
    if mode == "per_gem":
        return KeyedMutexSection()
    if mode == "none":
        return PassThroughSection()
    raise ValueError(f"Unknown ingest lock mode '{mode}'")


__all__ = [
    "CriticalSection",
    "KeyedMutexSection",
    "MutexSection",
    "PassThroughSection",
    "build_critical_section",
]
