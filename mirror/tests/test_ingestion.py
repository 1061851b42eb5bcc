import threading

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from mirror_api.db.models import DependencyRecord, RubygemRecord, VersionRecord
from mirror_api.domain.models import DependencySpec, Payload
from mirror_api.errors import MalformedSpecError, PersistenceError, SpecTransportError
from mirror_api.repo.rubygems import RubygemRepository
from mirror_api.service.counter import GemCounter
from mirror_api.service.facade import MirrorServiceFacade
from mirror_api.service.gem_info import GemInfo, content_hash
from mirror_api.service.index_cache import NAMES_KEY, IndexCache, info_key
from mirror_api.service.ingestion import Committed, Failed, IngestionJob, IngestMode, Skipped
from mirror_api.service.locking import KeyedMutexSection
from mirror_api.service.name_cache import NameCache


def _count(session_factory, model):
    with session_factory() as session:
        return session.execute(select(func.count()).select_from(model)).scalar_one()


def _info_checksums(session_factory, name):
    with session_factory() as session:
        stmt = (
            select(VersionRecord.number, VersionRecord.info_checksum)
            .join(RubygemRecord, VersionRecord.rubygem_id == RubygemRecord.id)
            .where(RubygemRecord.name == name, VersionRecord.indexed.is_(True))
        )
        return dict(session.execute(stmt).all())


def _served_info_hash(session_factory, name):
    with session_factory() as session:
        return content_hash(GemInfo().info(name, session))


def test_add_commits_version_dependencies_and_checksum(services, spec_source, session_factory):
    payload = spec_source.publish(
        "rack",
        "1.0.1",
        checksum="deadbeef",
        dependencies=[
            DependencySpec(name="webrick", requirements=">= 1.0, < 2"),
            DependencySpec(name="rake", requirements="~> 13.0", scope="development"),
        ],
        required_ruby_version=">= 2.4",
    )

    result = services.ingest(payload)

    assert isinstance(result, Committed)
    assert result.created is True
    assert result.dependencies_added == 2
    assert services.counter.value == 1
    assert _count(session_factory, DependencyRecord) == 2
    body = services.index_cache.info("rack").body
    assert body == "---\n1.0.1 webrick:>= 1.0&< 2|checksum:deadbeef,ruby:>= 2.4\n"
    assert _info_checksums(session_factory, "rack") == {"1.0.1": content_hash(body)}
    assert result.info_checksum == content_hash(body)


def test_add_is_idempotent(services, spec_source, session_factory):
    payload = spec_source.publish("rack", "1.0.1")

    first = services.ingest(payload)
    second = services.ingest(payload)

    assert isinstance(first, Committed)
    assert second == Skipped(payload, "exists")
    assert _count(session_factory, VersionRecord) == 1
    assert services.counter.value == 1
    assert len(spec_source.spec_calls) == 1


def test_info_checksum_is_refreshed_on_every_sibling(services, spec_source, session_factory):
    services.ingest(spec_source.publish("rack", "1.0.0", checksum="a"))
    services.ingest(spec_source.publish("rack", "1.1.0", checksum="b"))
    services.ingest(spec_source.publish("rack", "1.1.0", platform="java", checksum="c"))

    checksums = _info_checksums(session_factory, "rack")
    assert set(checksums.values()) == {_served_info_hash(session_factory, "rack")}
    assert services.index_cache.info("rack").etag == _served_info_hash(session_factory, "rack")


def test_fix_deps_on_missing_version_is_a_no_op(services, spec_source, session_factory):
    payload = spec_source.publish("rack", "9.9.9")

    result = services.ingest(payload, IngestMode.FIX_DEPS)

    assert result == Skipped(payload, "missing")
    assert _count(session_factory, RubygemRecord) == 0
    assert _count(session_factory, VersionRecord) == 0
    assert services.counter.value == 0
    assert spec_source.spec_calls == []


def test_fix_deps_adds_missing_dependencies_only(services, spec_source, session_factory, seed):
    seed(
        "rack",
        "1.0.0",
        checksum="original",
        dependencies=[DependencySpec(name="webrick", requirements=">= 1")],
    )
    payload = spec_source.publish(
        "rack",
        "1.0.0",
        checksum="ignored",
        dependencies=[
            DependencySpec(name="webrick", requirements=">= 1"),
            DependencySpec(name="base64", requirements=">= 0"),
        ],
    )

    result = services.ingest(payload, IngestMode.FIX_DEPS)

    assert isinstance(result, Committed)
    assert result.created is False
    assert result.dependencies_added == 1
    assert services.counter.value == 1
    assert spec_source.checksum_calls == []
    body = services.index_cache.info("rack").body
    assert body == "---\n1.0.0 base64:>= 0,webrick:>= 1|checksum:original\n"

    repeat = services.ingest(payload, IngestMode.FIX_DEPS)
    assert isinstance(repeat, Committed)
    assert repeat.dependencies_added == 0
    assert services.counter.value == 1


class _FailingDependencyRepo(RubygemRepository):
    def insert_dependencies(self, *, version_id, dependencies, session):
        super().insert_dependencies(version_id=version_id, dependencies=dependencies, session=session)
        raise OperationalError("INSERT INTO dependencies", {}, Exception("disk I/O error"))


def test_failed_dependency_insert_rolls_back_everything(session_factory, spec_source, seed):
    seed("rails", "7.0.0", checksum="r")
    payload = spec_source.publish(
        "rack",
        "1.0.1",
        dependencies=[DependencySpec(name="webrick", requirements=">= 1")],
    )
    name_cache = NameCache()
    index_cache = IndexCache(session_factory)
    counter = GemCounter()
    index_cache.names()

    result = IngestionJob(
        payload,
        session_factory=session_factory,
        spec_source=spec_source,
        name_cache=name_cache,
        index_cache=index_cache,
        counter=counter,
        repo=_FailingDependencyRepo(),
        silent=True,
    ).run()

    assert isinstance(result, Failed)
    assert isinstance(result.error, PersistenceError)
    assert _count(session_factory, VersionRecord) == 1
    assert _count(session_factory, DependencyRecord) == 0
    assert _count(session_factory, RubygemRecord) == 1
    assert "rack" not in name_cache
    assert counter.value == 0
    assert NAMES_KEY in index_cache


class _UnreachableRepo(RubygemRepository):
    def version_exists(self, *, name, number, platform, session):
        raise OperationalError("SELECT versions", {}, Exception("connection lost"))


@pytest.mark.parametrize("mode", list(IngestMode))
def test_lookup_failure_is_reported_as_failed(session_factory, spec_source, mode):
    payload = spec_source.publish("rack", "1.0.1")
    counter = GemCounter()

    result = IngestionJob(
        payload,
        session_factory=session_factory,
        spec_source=spec_source,
        name_cache=NameCache(),
        counter=counter,
        mode=mode,
        repo=_UnreachableRepo(),
        silent=True,
    ).run()

    assert isinstance(result, Failed)
    assert isinstance(result.error, PersistenceError)
    assert "connection lost" in str(result.error)
    assert spec_source.spec_calls == []
    assert counter.value == 0


def test_job_releases_the_fetched_spec(services, spec_source):
    payload = spec_source.publish("rack", "1.0.1")
    failing = spec_source.publish("rack", "1.0.2")
    spec_source.fail(failing, SpecTransportError("connection reset"))

    services.ingest(payload)
    services.ingest(failing)

    assert spec_source.forgotten == [payload, failing]


def test_add_purges_cached_info(services, spec_source):
    services.ingest(spec_source.publish("rack", "1.0.0", checksum="a"))
    before = services.index_cache.info("rack")
    names_before = services.index_cache.names()

    services.ingest(spec_source.publish("rack", "1.0.1", checksum="b"))

    assert info_key("rack") not in services.index_cache
    after = services.index_cache.info("rack")
    assert after.etag != before.etag
    assert "1.0.1 |checksum:b\n" in after.body
    assert services.index_cache.names().body == names_before.body


def test_transport_error_is_skipped_without_side_effects(services, spec_source, session_factory):
    payload = spec_source.publish("rack", "1.0.1")
    spec_source.fail(payload, SpecTransportError("connection reset"))

    result = services.ingest(payload)

    assert isinstance(result, Skipped)
    assert result.reason == "transport error: connection reset"
    assert _count(session_factory, RubygemRecord) == 0
    assert services.counter.value == 0


def test_unavailable_spec_is_skipped(services, session_factory):
    payload = Payload(name="ghost", version="0.0.1")

    assert services.ingest(payload) == Skipped(payload, "spec unavailable")
    assert _count(session_factory, RubygemRecord) == 0


def test_mismatched_spec_fails(services, spec_source, session_factory):
    payload = Payload(name="rack", version="1.0.1")
    spec_source.publish("rack", "2.0.0")
    spec_source.specs[("rack", "1.0.1", "ruby")] = spec_source.specs[("rack", "2.0.0", "ruby")]

    result = services.ingest(payload)

    assert isinstance(result, Failed)
    assert isinstance(result.error, MalformedSpecError)
    assert _count(session_factory, RubygemRecord) == 0
    assert "rack" not in services.name_cache
    assert services.counter.value == 0


def test_malformed_spec_from_source_fails(services, spec_source):
    payload = spec_source.publish("rack", "1.0.1")
    spec_source.fail(payload, MalformedSpecError("missing name"))

    result = services.ingest(payload)

    assert isinstance(result, Failed)
    assert isinstance(result.error, MalformedSpecError)


def test_prerelease_is_derived_from_version(services, spec_source, session_factory):
    services.ingest(spec_source.publish("rack", "3.0.0.beta1"))
    with session_factory() as session:
        assert session.execute(select(VersionRecord.prerelease)).scalar_one() is True


def test_remove_unindexes_version_and_refreshes_siblings(services, spec_source, session_factory):
    services.ingest(spec_source.publish("rack", "1.0.0", checksum="a"))
    payload = spec_source.publish("rack", "1.0.1", checksum="b")
    services.ingest(payload)
    services.index_cache.info("rack")
    calls_before = len(spec_source.spec_calls)

    result = services.ingest(payload, IngestMode.REMOVE)

    assert isinstance(result, Committed)
    assert len(spec_source.spec_calls) == calls_before
    assert services.index_cache.info("rack").body == "---\n1.0.0 |checksum:a\n"
    assert _info_checksums(session_factory, "rack") == {
        "1.0.0": _served_info_hash(session_factory, "rack")
    }
    assert _count(session_factory, VersionRecord) == 2
    assert services.ingest(payload, IngestMode.REMOVE) == Skipped(payload, "missing")


def test_add_after_remove_reindexes(services, spec_source, session_factory):
    payload = spec_source.publish("rack", "1.0.0", checksum="a")
    services.ingest(payload)
    services.ingest(payload, IngestMode.REMOVE)

    result = services.ingest(payload)

    assert isinstance(result, Committed)
    assert result.created is False
    assert _count(session_factory, VersionRecord) == 1
    assert services.index_cache.info("rack").body == "---\n1.0.0 |checksum:a\n"


def test_batch_reports_each_outcome(services, spec_source, session_factory):
    rack = spec_source.publish("rack", "1.0.0")
    rails = spec_source.publish("rails", "7.1.0")
    broken = spec_source.publish("broken", "0.1.0")
    spec_source.fail(broken, SpecTransportError("timeout"))
    ghost = Payload(name="ghost", version="1.0.0")

    report = services.ingest_batch([rack, rack, rails, broken, ghost])

    assert report.to_dict() == {"committed": 2, "skipped": 3, "failed": 0}
    assert services.counter.value == 2
    assert _count(session_factory, VersionRecord) == 2


def test_batch_survives_a_crashing_job(session_factory, spec_source):
    services = MirrorServiceFacade(session_factory=session_factory, spec_source=spec_source, silent=True)
    good = spec_source.publish("rack", "1.0.0")
    bad = spec_source.publish("rails", "7.1.0")
    spec_source.fail(bad, RuntimeError("boom"))

    report = services.ingest_batch([good, bad])

    assert len(report.committed) == 1
    assert len(report.failed) == 1
    assert isinstance(report.failed[0].error, RuntimeError)


def test_concurrent_adds_for_one_gem_share_a_single_row(session_factory, spec_source):
    services = MirrorServiceFacade(
        session_factory=session_factory,
        spec_source=spec_source,
        section=KeyedMutexSection(),
        ingest_workers=8,
        silent=True,
    )
    payloads = [spec_source.publish("rack", f"1.{minor}.0", checksum=str(minor)) for minor in range(8)]
    barrier = threading.Barrier(len(payloads))
    results = []

    def worker(payload):
        barrier.wait()
        results.append(services.ingest(payload))

    threads = [threading.Thread(target=worker, args=(payload,)) for payload in payloads]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(isinstance(result, Committed) for result in results)
    assert _count(session_factory, RubygemRecord) == 1
    assert _count(session_factory, VersionRecord) == 8
    assert services.counter.value == 8
    assert set(_info_checksums(session_factory, "rack").values()) == {
        _served_info_hash(session_factory, "rack")
    }


@pytest.mark.parametrize("mode", ["add", "fix_deps", "remove"])
def test_modes_accept_plain_strings(services, mode):
    job = services.build_job(Payload(name="rack", version="1.0.0"), mode)
    assert isinstance(job.run(), Skipped)
