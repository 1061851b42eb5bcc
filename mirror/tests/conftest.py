from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from mirror_api.db import Base, create_session_factory, run_in_session
from mirror_api.domain.models import DEFAULT_PLATFORM, DependencySpec, GemSpec, Payload
from mirror_api.main import app
from mirror_api.repo.rubygems import RubygemRepository
from mirror_api.service.facade import MirrorServiceFacade, get_mirror_services
from mirror_api.service.locking import MutexSection

SpecKey = Tuple[str, str, str]


class FakeSpecSource:
    """In-memory stand-in for the upstream registry."""

    def __init__(self) -> None:
        self.specs: Dict[SpecKey, GemSpec] = {}
        self.checksums: Dict[SpecKey, str] = {}
        self.errors: Dict[SpecKey, Exception] = {}
        self.spec_calls: list[Payload] = []
        self.checksum_calls: list[Payload] = []
        self.forgotten: list[Payload] = []

    @staticmethod
    def _key(payload: Payload) -> SpecKey:
        return (payload.name, payload.version, payload.platform)

    def publish(
        self,
        name: str,
        version: str,
        *,
        platform: str = DEFAULT_PLATFORM,
        checksum: str = "sha256",
        dependencies: Sequence[DependencySpec] = (),
        required_ruby_version: Optional[str] = None,
        required_rubygems_version: Optional[str] = None,
    ) -> Payload:
        key = (name, version, platform)
        self.specs[key] = GemSpec(
            name=name,
            version=version,
            platform=platform,
            dependencies=tuple(dependencies),
            required_ruby_version=required_ruby_version,
            required_rubygems_version=required_rubygems_version,
        )
        self.checksums[key] = checksum
        return Payload(name=name, version=version, platform=platform)

    def fail(self, payload: Payload, error: Exception) -> None:
        self.errors[self._key(payload)] = error

    def download_spec(self, payload: Payload) -> Optional[GemSpec]:
        self.spec_calls.append(payload)
        error = self.errors.get(self._key(payload))
        if error is not None:
            raise error
        return self.specs.get(self._key(payload))

    def download_checksum(self, payload: Payload) -> Optional[str]:
        self.checksum_calls.append(payload)
        return self.checksums.get(self._key(payload))

    def forget(self, payload: Payload) -> None:
        self.forgotten.append(payload)


@pytest.fixture()
def session_factory(tmp_path):
    factory = create_session_factory(f"sqlite:///{(tmp_path / 'mirror.db').as_posix()}")
    engine = factory.kw["bind"]
    Base.metadata.create_all(engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def repo() -> RubygemRepository:
    return RubygemRepository()


@pytest.fixture()
def spec_source() -> FakeSpecSource:
    return FakeSpecSource()


@pytest.fixture()
def services(session_factory, spec_source) -> MirrorServiceFacade:
    return MirrorServiceFacade(
        session_factory=session_factory,
        spec_source=spec_source,
        section=MutexSection(),
        ingest_workers=4,
        silent=True,
    )


@pytest.fixture()
def client(services):
    app.dependency_overrides[get_mirror_services] = lambda: services
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_mirror_services, None)


@pytest.fixture()
def seed(session_factory, repo):
    """Write a gem version straight into the store, bypassing ingestion."""

    def _seed(
        name: str,
        version: Optional[str] = None,
        *,
        platform: str = DEFAULT_PLATFORM,
        checksum: Optional[str] = None,
        dependencies: Sequence[DependencySpec] = (),
        required_ruby_version: Optional[str] = None,
        required_rubygems_version: Optional[str] = None,
        indexed: bool = True,
    ) -> Optional[int]:
        def _write(session):
            _, gem_id = repo.find_or_create_rubygem(name=name, session=session)
            if version is None:
                return None
            spec = GemSpec(
                name=name,
                version=version,
                platform=platform,
                dependencies=tuple(dependencies),
                required_ruby_version=required_ruby_version,
                required_rubygems_version=required_rubygems_version,
            )
            _, version_id = repo.find_or_create_version(
                rubygem_id=gem_id,
                spec=spec,
                platform=platform,
                checksum=checksum,
                indexed=indexed,
                prerelease=False,
                session=session,
            )
            repo.insert_dependencies(
                version_id=version_id,
                dependencies=spec.dependencies,
                session=session,
            )
            return version_id

        return run_in_session(_write, session_factory=session_factory)

    return _seed
