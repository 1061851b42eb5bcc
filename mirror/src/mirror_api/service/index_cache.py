"""Memoized compact index bodies with content-hash validators."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict

from sqlalchemy.orm import Session, sessionmaker

from .gem_info import GemInfo, content_hash
from .versions_file import VersionsFile, VersionsRenderer

LOGGER = logging.getLogger(__name__)

NAMES_KEY = "names"
VERSIONS_KEY = "versions"
INFO_PREFIX = "info/"


def info_key(name: str) -> str:
    return f"{INFO_PREFIX}{name}"


@dataclass(frozen=True)
class CachedBody:
    body: str
    etag: str

    def matches(self, if_none_match: str | None) -> bool:
        """True when a client validator from ``If-None-Match`` names this body."""

        if not if_none_match:
            return False
        for candidate in if_none_match.split(","):
            tag = candidate.strip()
            if tag == "*":
                return True
            if tag.startswith("W/"):
                tag = tag[2:]
            if tag.strip('"') == self.etag:
                return True
        return False


class IndexCache:
    """Lazily renders and memoizes ``names``, ``versions`` and ``info/<gem>``.

    Each key carries a generation number bumped by :meth:`purge`; a render
    that started before a purge is returned to its caller but not stored.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        gem_info: GemInfo | None = None,
        versions_renderer: VersionsRenderer | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._gem_info = gem_info or GemInfo()
        self._versions_renderer: VersionsRenderer = versions_renderer or VersionsFile()
        self._lock = threading.Lock()
        self._entries: Dict[str, CachedBody] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0

    def names(self) -> CachedBody:
        return self.get(NAMES_KEY)

    def versions(self) -> CachedBody:
        return self.get(VERSIONS_KEY)

    def info(self, name: str) -> CachedBody:
        return self.get(info_key(name))

    def get(self, key: str) -> CachedBody:
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                return cached
            generation = (self._epoch, self._generations.get(key, 0))

        entry = self._render(key)
        with self._lock:
            if (self._epoch, self._generations.get(key, 0)) == generation:
                self._entries[key] = entry
        return entry

    def purge(self, name: str) -> None:
        """Evict every entry whose body depends on gem ``name``."""

        with self._lock:
            for key in (info_key(name), NAMES_KEY, VERSIONS_KEY):
                self._entries.pop(key, None)
                self._generations[key] = self._generations.get(key, 0) + 1
        LOGGER.debug("Purged compact index entries for %s", name)

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _render(self, key: str) -> CachedBody:
        renderer = self._renderer_for(key)
        with self._session_factory() as session:
            body = renderer(session)
        return CachedBody(body=body, etag=content_hash(body))

    def _renderer_for(self, key: str) -> Callable[[Session], str]:
        if key == NAMES_KEY:
            return self._gem_info.names
        if key == VERSIONS_KEY:
            return self._versions_renderer
        if key.startswith(INFO_PREFIX):
            name = key[len(INFO_PREFIX):]
            return lambda session: self._gem_info.info(name, session)
        raise KeyError(f"Unknown compact index resource '{key}'")


__all__ = [
    "CachedBody",
    "INFO_PREFIX",
    "IndexCache",
    "NAMES_KEY",
    "VERSIONS_KEY",
    "info_key",
]
