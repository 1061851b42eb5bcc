"""Database model package."""

from .dependency import DependencyRecord
from .rubygem import RubygemRecord
from .version import VersionRecord

__all__ = [
    "DependencyRecord",
    "RubygemRecord",
    "VersionRecord",
]
