"""Repository layer for data access."""

from .rubygems import RubygemRepository, VersionRow

__all__ = ["RubygemRepository", "VersionRow"]
