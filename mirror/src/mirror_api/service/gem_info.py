"""Compact index serialization (``names`` and ``info/<gem>`` bodies)."""

from __future__ import annotations

import hashlib
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from mirror_api.domain.models import DEFAULT_PLATFORM, VersionSnapshot
from mirror_api.repo.rubygems import RubygemRepository

HEADER = "---\n"


def content_hash(body: str) -> str:
    """Validator for a rendered body; also stored as ``info_checksum``."""

    return hashlib.md5(body.encode("utf-8")).hexdigest()


def _version_label(version: VersionSnapshot) -> str:
    if version.platform and version.platform != DEFAULT_PLATFORM:
        return f"{version.number}-{version.platform}"
    return version.number


def _dependency_list(version: VersionSnapshot) -> str:
    return ",".join(
        f"{dependency.name}:{'&'.join(dependency.clauses)}"
        for dependency in version.dependencies
    )


def _metadata_list(version: VersionSnapshot) -> str:
    parts = [f"checksum:{version.checksum or ''}"]
    if version.required_ruby_version:
        parts.append(f"ruby:{version.required_ruby_version}")
    if version.required_rubygems_version:
        parts.append(f"rubygems:{version.required_rubygems_version}")
    return ",".join(parts)


def render_names(names: Iterable[str]) -> str:
    return HEADER + "".join(f"{name}\n" for name in names) + "\n"


def render_info(versions: Sequence[VersionSnapshot]) -> str:
    if not versions:
        return ""
    lines = [
        f"{_version_label(version)} {_dependency_list(version)}|{_metadata_list(version)}\n"
        for version in versions
    ]
    return HEADER + "".join(lines)


class GemInfo:
    """Reads store snapshots and renders them; never writes."""

    def __init__(self, repo: RubygemRepository | None = None) -> None:
        self._repo = repo or RubygemRepository()

    def names(self, session: Session) -> str:
        return render_names(self._repo.list_names(session=session))

    def info(self, name: str, session: Session) -> str:
        return render_info(self._repo.snapshot(name=name, session=session))


__all__ = ["GemInfo", "HEADER", "content_hash", "render_info", "render_names"]
