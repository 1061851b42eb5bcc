"""Error taxonomy for ingestion and storage."""

from __future__ import annotations


class MirrorError(Exception):
    """Base error for mirror operations."""


class SpecTransportError(MirrorError):
    """Raised when a spec or checksum could not be fetched from upstream."""


class MalformedSpecError(MirrorError):
    """Raised when a spec lacks the fields required to persist it."""


class PersistenceError(MirrorError):
    """Raised when the storage transaction for one spec fails."""


__all__ = [
    "MalformedSpecError",
    "MirrorError",
    "PersistenceError",
    "SpecTransportError",
]
