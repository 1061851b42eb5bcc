import threading

import pytest

from mirror_api.service.gem_info import content_hash
from mirror_api.service.index_cache import NAMES_KEY, VERSIONS_KEY, CachedBody, IndexCache, info_key


class CountingVersions:
    def __init__(self, body="created_at: 1970-01-01T00:00:00Z\n---\n"):
        self.body = body
        self.calls = 0

    def __call__(self, session):
        self.calls += 1
        return self.body


def test_get_memoizes_body_and_etag(session_factory, seed):
    seed("rack", "1.0.0", checksum="abc")
    renderer = CountingVersions()
    cache = IndexCache(session_factory, versions_renderer=renderer)

    first = cache.versions()
    second = cache.versions()
    assert first is second
    assert renderer.calls == 1
    assert first.etag == content_hash(first.body)

    info = cache.info("rack")
    assert info.body == "---\n1.0.0 |checksum:abc\n"
    assert info_key("rack") in cache


def test_purge_evicts_info_names_and_versions(session_factory, seed):
    seed("rack", "1.0.0", checksum="abc")
    seed("rails", "7.0.0", checksum="def")
    cache = IndexCache(session_factory, versions_renderer=CountingVersions())
    cache.names()
    cache.versions()
    cache.info("rack")
    cache.info("rails")

    cache.purge("rack")

    assert info_key("rack") not in cache
    assert NAMES_KEY not in cache
    assert VERSIONS_KEY not in cache
    assert info_key("rails") in cache


def test_purge_reflects_new_store_state(session_factory, seed):
    seed("rack", "1.0.0", checksum="abc")
    cache = IndexCache(session_factory)
    before = cache.info("rack")
    seed("rack", "1.0.1", checksum="def")
    assert cache.info("rack") is before

    cache.purge("rack")
    after = cache.info("rack")
    assert after.etag != before.etag
    assert after.body.endswith("1.0.1 |checksum:def\n")


def test_render_started_before_purge_is_not_stored(session_factory):
    started = threading.Event()
    release = threading.Event()

    class SlowVersions:
        def __call__(self, session):
            started.set()
            release.wait(timeout=5)
            return "stale\n"

    cache = IndexCache(session_factory, versions_renderer=SlowVersions())
    results = []
    reader = threading.Thread(target=lambda: results.append(cache.versions()))
    reader.start()
    assert started.wait(timeout=5)
    cache.purge("rack")
    release.set()
    reader.join()

    assert results[0].body == "stale\n"
    assert VERSIONS_KEY not in cache


def test_clear_drops_everything(session_factory):
    cache = IndexCache(session_factory, versions_renderer=CountingVersions())
    cache.names()
    cache.versions()
    cache.clear()
    assert NAMES_KEY not in cache
    assert VERSIONS_KEY not in cache


def test_unknown_key_is_rejected(session_factory):
    with pytest.raises(KeyError):
        IndexCache(session_factory).get("specs.4.8")


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, False),
        ("", False),
        ("abc", True),
        ('"abc"', True),
        ('W/"abc"', True),
        ('"zzz", "abc"', True),
        ("*", True),
        ('"zzz"', False),
    ],
)
def test_cached_body_matches_validators(header, expected):
    assert CachedBody(body="x", etag="abc").matches(header) is expected
