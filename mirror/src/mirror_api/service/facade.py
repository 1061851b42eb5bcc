"""Facade owning the process-wide ingestion and compact index collaborators."""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.orm import Session, sessionmaker

from mirror_api.config.settings import get_settings
from mirror_api.db.session import SessionLocal
from mirror_api.domain.models import Payload
from mirror_api.repo.rubygems import RubygemRepository

from .counter import GemCounter
from .gem_info import GemInfo
from .index_cache import IndexCache
from .ingestion import BatchReport, IngestMode, IngestionJob, IngestionResult, IngestionRunner
from .locking import CriticalSection, MutexSection, build_critical_section
from .name_cache import NameCache
from .spec_source import RubygemsSpecSource, SpecSource
from .versions_file import VersionsFile, VersionsRenderer


class MirrorServiceFacade:
    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | None = None,
        spec_source: SpecSource | None = None,
        section: CriticalSection | None = None,
        versions_renderer: VersionsRenderer | None = None,
        ingest_workers: int | None = None,
        silent: bool | None = None,
    ) -> None:
        settings = get_settings()
        self.session_factory = session_factory or SessionLocal
        self.repo = RubygemRepository()
        self.gem_info = GemInfo(self.repo)
        self.spec_source = spec_source or RubygemsSpecSource.from_settings()
        self.section = section or build_critical_section(settings.ingest_lock)
        # Jobs hold ``section`` while resolving names, so the cache needs its own lock.
        self.name_cache = NameCache(MutexSection())
        self.index_cache = IndexCache(
            self.session_factory,
            gem_info=self.gem_info,
            versions_renderer=versions_renderer or VersionsFile(self.repo),
        )
        self.counter = GemCounter()
        self.silent = settings.silent if silent is None else silent
        self.runner = IngestionRunner(
            self.build_job,
            max_workers=ingest_workers or settings.ingest_workers,
        )

    def build_job(self, payload: Payload, mode: IngestMode = IngestMode.ADD) -> IngestionJob:
        return IngestionJob(
            payload,
            session_factory=self.session_factory,
            spec_source=self.spec_source,
            name_cache=self.name_cache,
            section=self.section,
            index_cache=self.index_cache,
            counter=self.counter,
            mode=mode,
            repo=self.repo,
            gem_info=self.gem_info,
            silent=self.silent,
        )

    def ingest(self, payload: Payload, mode: IngestMode = IngestMode.ADD) -> IngestionResult:
        return self.build_job(payload, mode).run()

    def ingest_batch(
        self,
        payloads: list[Payload],
        mode: IngestMode = IngestMode.ADD,
    ) -> BatchReport:
        return self.runner.run_batch(payloads, mode)


@lru_cache()
def get_mirror_services() -> MirrorServiceFacade:
    return MirrorServiceFacade()


__all__ = ["MirrorServiceFacade", "get_mirror_services"]
