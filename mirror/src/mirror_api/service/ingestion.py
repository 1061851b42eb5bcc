"""Ingestion of one gem release into the registry store.

A job downloads the spec (outside any lock), then inside the critical section
for the gem name persists the gem, version, dependencies and the refreshed
``info_checksum`` values in a single transaction. Only after that transaction
commits does it touch the counter and purge the compact index cache, so
neither ever reflects a rolled-back write.

The job reads the rendered ``info/<gem>`` body through :class:`GemInfo` to
compute ``info_checksum``; the serializer never depends on ingestion.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from mirror_api.db.session import run_in_session
from mirror_api.domain.models import GemSpec, Payload
from mirror_api.domain.versions import is_prerelease
from mirror_api.errors import MalformedSpecError, MirrorError, PersistenceError, SpecTransportError
from mirror_api.repo.rubygems import RubygemRepository

from .counter import GemCounter
from .gem_info import GemInfo, content_hash
from .index_cache import IndexCache
from .locking import CriticalSection, MutexSection
from .name_cache import NameCache
from .spec_source import SpecSource

LOGGER = logging.getLogger(__name__)


class IngestMode(str, Enum):
    ADD = "add"
    FIX_DEPS = "fix_deps"
    REMOVE = "remove"


@dataclass(frozen=True)
class Committed:
    payload: Payload
    version_id: int
    created: bool
    dependencies_added: int = 0
    info_checksum: Optional[str] = None


@dataclass(frozen=True)
class Skipped:
    payload: Payload
    reason: str


@dataclass(frozen=True)
class Failed:
    payload: Payload
    error: Exception


IngestionResult = Union[Committed, Skipped, Failed]


@dataclass(frozen=True)
class _Outcome:
    version_id: int
    created: bool
    dependencies_added: int
    info_checksum: str


def _validate_spec(spec: GemSpec, payload: Payload) -> None:
    if not spec.name or not spec.version:
        raise MalformedSpecError(f"Failed to load spec for {payload.full_name}")
    if spec.name != payload.name or spec.version != payload.version:
        raise MalformedSpecError(
            f"Spec {spec.name}-{spec.version} does not match payload {payload.full_name}"
        )
    for dependency in spec.dependencies:
        if not dependency.name or not dependency.requirements:
            raise MalformedSpecError(
                f"Spec {payload.full_name} has an incomplete dependency: {dependency!r}"
            )


class IngestionJob:
    def __init__(
        self,
        payload: Payload,
        *,
        session_factory: sessionmaker[Session],
        spec_source: SpecSource,
        name_cache: NameCache,
        section: CriticalSection | None = None,
        index_cache: IndexCache | None = None,
        counter: GemCounter | None = None,
        mode: IngestMode = IngestMode.ADD,
        repo: RubygemRepository | None = None,
        gem_info: GemInfo | None = None,
        silent: bool = False,
    ) -> None:
        self.payload = payload
        self._session_factory = session_factory
        self._spec_source = spec_source
        self._name_cache = name_cache
        self._section = section or MutexSection()
        self._index_cache = index_cache
        self._counter = counter
        self._mode = IngestMode(mode)
        self._repo = repo or RubygemRepository()
        self._gem_info = gem_info or GemInfo(self._repo)
        self._silent = silent
        self._created_gem = False

    def run(self) -> IngestionResult:
        try:
            exists = self._exists()
        except SQLAlchemyError as exc:
            LOGGER.error("Failed to look up %s", self.payload.full_name, exc_info=True)
            return Failed(self.payload, PersistenceError(str(exc)))
        if exists and self._mode is IngestMode.ADD:
            return Skipped(self.payload, "exists")
        if not exists and self._mode is not IngestMode.ADD:
            return Skipped(self.payload, "missing")
        if self._mode is IngestMode.REMOVE:
            return self._remove()

        self._log("Adding: %s", self.payload.full_name)
        try:
            spec = self._spec_source.download_spec(self.payload)
            if spec is None:
                return Skipped(self.payload, "spec unavailable")
            checksum = None
            if self._mode is not IngestMode.FIX_DEPS:
                checksum = self._spec_source.download_checksum(self.payload)
        except SpecTransportError as exc:
            LOGGER.warning(
                "IngestionJob.run gem=%r message=%r", self.payload.full_name, str(exc)
            )
            return Skipped(self.payload, f"transport error: {exc}")
        except MalformedSpecError as exc:
            LOGGER.error("Rejected spec for %s: %s", self.payload.full_name, exc)
            return Failed(self.payload, exc)
        finally:
            self._spec_source.forget(self.payload)

        with self._section.hold(self.payload.name):
            try:
                outcome = run_in_session(
                    lambda session: self._insert_spec(session, spec, checksum),
                    session_factory=self._session_factory,
                )
            except MirrorError as exc:
                self._forget_created_gem()
                LOGGER.error("Rejected spec for %s: %s", self.payload.full_name, exc)
                return Failed(self.payload, exc)
            except SQLAlchemyError as exc:
                self._forget_created_gem()
                LOGGER.error(
                    "Failed to persist %s", self.payload.full_name, exc_info=True
                )
                return Failed(self.payload, PersistenceError(str(exc)))

            if outcome is None:
                return Skipped(self.payload, "exists")
            if self._counter is not None and (
                self._mode is IngestMode.ADD or outcome.dependencies_added
            ):
                self._counter.increment()
            if self._index_cache is not None:
                self._index_cache.purge(self.payload.name)

        return Committed(
            payload=self.payload,
            version_id=outcome.version_id,
            created=outcome.created,
            dependencies_added=outcome.dependencies_added,
            info_checksum=outcome.info_checksum,
        )

    def _exists(self) -> bool:
        with self._session_factory() as session:
            return self._repo.version_exists(
                name=self.payload.name,
                number=self.payload.version,
                platform=self.payload.platform,
                session=session,
            )

    def _insert_spec(
        self,
        session: Session,
        spec: GemSpec,
        checksum: str | None,
    ) -> _Outcome | None:
        _validate_spec(spec, self.payload)
        if self._mode is IngestMode.ADD and self._repo.version_exists(
            name=spec.name,
            number=spec.version,
            platform=self.payload.platform,
            session=session,
        ):
            return None

        def _load_gem_id(name: str) -> int:
            created, gem_id = self._repo.find_or_create_rubygem(name=name, session=session)
            self._created_gem = created
            return gem_id

        rubygem_id = self._name_cache.resolve(spec.name, _load_gem_id)
        created, version_id = self._repo.find_or_create_version(
            rubygem_id=rubygem_id,
            spec=spec,
            platform=self.payload.platform,
            checksum=checksum,
            indexed=True,
            prerelease=self.payload.prerelease or is_prerelease(spec.version),
            session=session,
        )
        added = self._repo.insert_dependencies(
            version_id=version_id,
            dependencies=spec.dependencies,
            session=session,
        )
        info_checksum = self._refresh_info_checksums(session, rubygem_id, spec.name)
        return _Outcome(
            version_id=version_id,
            created=created,
            dependencies_added=len(added),
            info_checksum=info_checksum,
        )

    def _remove(self) -> IngestionResult:
        def _unindex(session: Session) -> _Outcome | None:
            version = self._repo.get_version(
                name=self.payload.name,
                number=self.payload.version,
                platform=self.payload.platform,
                session=session,
            )
            if version is None:
                return None
            self._repo.unindex_version(version_id=version.id, session=session)
            info_checksum = self._refresh_info_checksums(
                session, version.rubygem_id, self.payload.name
            )
            return _Outcome(
                version_id=version.id,
                created=False,
                dependencies_added=0,
                info_checksum=info_checksum,
            )

        self._log("Removing: %s", self.payload.full_name)
        with self._section.hold(self.payload.name):
            try:
                outcome = run_in_session(_unindex, session_factory=self._session_factory)
            except SQLAlchemyError as exc:
                LOGGER.error("Failed to remove %s", self.payload.full_name, exc_info=True)
                return Failed(self.payload, PersistenceError(str(exc)))
            if outcome is None:
                return Skipped(self.payload, "missing")
            if self._index_cache is not None:
                self._index_cache.purge(self.payload.name)

        return Committed(
            payload=self.payload,
            version_id=outcome.version_id,
            created=False,
            info_checksum=outcome.info_checksum,
        )

    def _refresh_info_checksums(self, session: Session, rubygem_id: int, name: str) -> str:
        session.flush()
        info_checksum = content_hash(self._gem_info.info(name, session))
        for version_id in self._repo.indexed_version_ids(rubygem_id=rubygem_id, session=session):
            self._repo.set_info_checksum(
                version_id=version_id,
                info_checksum=info_checksum,
                session=session,
            )
        return info_checksum

    def _forget_created_gem(self) -> None:
        # The cached id points at a row the rollback just discarded.
        if self._created_gem:
            self._name_cache.evict(self.payload.name)
            self._created_gem = False

    def _log(self, message: str, *args: object) -> None:
        if not self._silent:
            LOGGER.info(message, *args)


@dataclass
class BatchReport:
    committed: List[Committed] = field(default_factory=list)
    skipped: List[Skipped] = field(default_factory=list)
    failed: List[Failed] = field(default_factory=list)

    def add(self, result: IngestionResult) -> None:
        if isinstance(result, Committed):
            self.committed.append(result)
        elif isinstance(result, Skipped):
            self.skipped.append(result)
        else:
            self.failed.append(result)

    def to_dict(self) -> dict[str, int]:
        return {
            "committed": len(self.committed),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


JobFactory = Callable[[Payload, IngestMode], IngestionJob]


class IngestionRunner:
    """Drains payloads on a thread pool; one item's failure never stops the others."""

    def __init__(self, job_factory: JobFactory, *, max_workers: int = 4) -> None:
        self._job_factory = job_factory
        self._max_workers = max_workers

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def run_batch(
        self,
        payloads: Iterable[Payload],
        mode: IngestMode = IngestMode.ADD,
    ) -> BatchReport:
        items = list(payloads)
        report = BatchReport()
        if not items:
            return report
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [
                (payload, executor.submit(self._job_factory(payload, mode).run))
                for payload in items
            ]
            for payload, future in futures:
                try:
                    report.add(future.result())
                except Exception as exc:
                    LOGGER.error("Ingestion crashed for %s", payload.full_name, exc_info=True)
                    report.add(Failed(payload, exc))
        LOGGER.info(
            "Ingestion batch finished: committed=%d skipped=%d failed=%d",
            len(report.committed),
            len(report.skipped),
            len(report.failed),
        )
        return report


__all__ = [
    "BatchReport",
    "Committed",
    "Failed",
    "IngestMode",
    "IngestionJob",
    "IngestionResult",
    "IngestionRunner",
    "JobFactory",
    "Skipped",
]
