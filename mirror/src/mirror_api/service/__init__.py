"""Service layer."""

from .counter import GemCounter
from .facade import MirrorServiceFacade, get_mirror_services
from .gem_info import GemInfo, content_hash, render_info, render_names
from .index_cache import CachedBody, IndexCache
from .ingestion import (
    BatchReport,
    Committed,
    Failed,
    IngestionJob,
    IngestionResult,
    IngestionRunner,
    IngestMode,
    Skipped,
)
from .locking import (
    CriticalSection,
    KeyedMutexSection,
    MutexSection,
    PassThroughSection,
    build_critical_section,
)
from .name_cache import NameCache
from .spec_source import RubygemsSpecSource, SpecSource
from .versions_file import VersionsFile

__all__ = [
    "BatchReport",
    "CachedBody",
    "Committed",
    "CriticalSection",
    "Failed",
    "GemCounter",
    "GemInfo",
    "IndexCache",
    "IngestMode",
    "IngestionJob",
    "IngestionResult",
    "IngestionRunner",
    "KeyedMutexSection",
    "MirrorServiceFacade",
    "MutexSection",
    "NameCache",
    "PassThroughSection",
    "RubygemsSpecSource",
    "Skipped",
    "SpecSource",
    "VersionsFile",
    "build_critical_section",
    "content_hash",
    "get_mirror_services",
    "render_info",
    "render_names",
]
