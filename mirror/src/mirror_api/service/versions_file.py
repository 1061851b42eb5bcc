"""Default renderer for the compact index ``versions`` file."""

from __future__ import annotations

from datetime import timezone
from typing import Dict, List, Protocol

from sqlalchemy.orm import Session

from mirror_api.domain.models import DEFAULT_PLATFORM
from mirror_api.repo.rubygems import RubygemRepository, VersionRow

EPOCH_HEADER = "created_at: 1970-01-01T00:00:00Z\n"


class VersionsRenderer(Protocol):
    def __call__(self, session: Session) -> str:
        ...


def _label(row: VersionRow) -> str:
    if row.platform and row.platform != DEFAULT_PLATFORM:
        return f"{row.number}-{row.platform}"
    return row.number


def _created_at_header(rows: List[VersionRow]) -> str:
    if not rows:
        return EPOCH_HEADER
    earliest = min(row.created_at for row in rows)
    if earliest.tzinfo is None:
        earliest = earliest.replace(tzinfo=timezone.utc)
    stamp = earliest.astimezone(timezone.utc).replace(microsecond=0)
    return f"created_at: {stamp.strftime('%Y-%m-%dT%H:%M:%SZ')}\n"


class VersionsFile:
    """Renders one line per gem: ``<name> <v1>,<v2> <info_checksum>``."""

    def __init__(self, repo: RubygemRepository | None = None) -> None:
        self._repo = repo or RubygemRepository()

    def __call__(self, session: Session) -> str:
        rows = self._repo.list_indexed_versions(session=session)
        grouped: Dict[str, List[VersionRow]] = {}
        for row in rows:
            grouped.setdefault(row.name, []).append(row)

        lines = []
        for name in sorted(grouped, key=lambda item: item.encode("utf-8")):
            items = grouped[name]
            labels = ",".join(_label(row) for row in items)
            info_checksum = items[-1].info_checksum or ""
            lines.append(f"{name} {labels} {info_checksum}\n")
        return _created_at_header(rows) + "---\n" + "".join(lines)


__all__ = ["VersionsFile", "VersionsRenderer"]
