"""In-process ingestion counter."""

from __future__ import annotations

import threading


class GemCounter:
    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        return self._value


__all__ = ["GemCounter"]
