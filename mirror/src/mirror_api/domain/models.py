"""Domain types shared by ingestion, storage and serialization."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_PLATFORM = "ruby"


@dataclass(frozen=True)
class Payload:
    """Identity of one gem release queued for ingestion."""

    name: str
    version: str
    platform: str = DEFAULT_PLATFORM
    prerelease: bool = False

    @property
    def full_name(self) -> str:
        if self.platform and self.platform != DEFAULT_PLATFORM:
            return f"{self.name}-{self.version}-{self.platform}"
        return f"{self.name}-{self.version}"

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "version": self.version,
            "platform": self.platform,
            "prerelease": self.prerelease,
        }


@dataclass(frozen=True)
class DependencySpec:
    name: str
    requirements: str
    scope: str = "runtime"


@dataclass(frozen=True)
class GemSpec:
    """Metadata of one release as published by the upstream registry."""

    name: str
    version: str
    platform: str = DEFAULT_PLATFORM
    dependencies: Tuple[DependencySpec, ...] = ()
    required_ruby_version: Optional[str] = None
    required_rubygems_version: Optional[str] = None


@dataclass(frozen=True)
class DependencySnapshot:
    name: str
    requirements: str

    @property
    def clauses(self) -> Tuple[str, ...]:
        return tuple(
            clause.strip() for clause in self.requirements.split(",") if clause.strip()
        )


@dataclass(frozen=True)
class VersionSnapshot:
    """Indexed version with its runtime dependencies, ready for rendering."""

    number: str
    platform: str = DEFAULT_PLATFORM
    checksum: Optional[str] = None
    required_ruby_version: Optional[str] = None
    required_rubygems_version: Optional[str] = None
    dependencies: Tuple[DependencySnapshot, ...] = field(default_factory=tuple)


__all__ = [
    "DEFAULT_PLATFORM",
    "DependencySnapshot",
    "DependencySpec",
    "GemSpec",
    "Payload",
    "VersionSnapshot",
]
