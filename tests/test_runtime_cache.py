"""
Runtime directory cache: ttl handling, refresh and failure propagation.
"""
import asyncio

import httpx
import pytest

from code_relay.services.execution import RuntimeCache, RuntimeDescriptor

from conftest import FakeClock, RUNTIMES


class CountingFetcher:
    def __init__(self, payload=None, error=None):
        self.payload = RUNTIMES if payload is None else payload
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


def test_starts_empty_and_invalid():
    cache = RuntimeCache(CountingFetcher(), clock=FakeClock())
    assert cache.is_valid() is False
    assert cache.ttl == 3600


def test_second_call_within_ttl_reuses_data():
    fetcher = CountingFetcher()
    clock = FakeClock()
    cache = RuntimeCache(fetcher, ttl=3600, clock=clock)

    first = asyncio.run(cache.get())
    clock.advance(3599)
    second = asyncio.run(cache.get())

    assert first == second
    assert fetcher.calls == 1
    assert [r.language for r in first] == ["python", "c++", "c", "java"]
    assert first[0] == RuntimeDescriptor("python", "3.10.0", ("py", "py3"))


def test_expiry_triggers_exactly_one_refetch():
    fetcher = CountingFetcher()
    clock = FakeClock()
    cache = RuntimeCache(fetcher, ttl=3600, clock=clock)

    asyncio.run(cache.get())
    clock.advance(3600)
    assert cache.is_valid() is False

    asyncio.run(cache.get())
    clock.advance(10)
    asyncio.run(cache.get())

    assert fetcher.calls == 2
    assert cache.is_valid() is True


def test_refetch_replaces_data():
    fetcher = CountingFetcher()
    clock = FakeClock()
    cache = RuntimeCache(fetcher, ttl=60, clock=clock)

    asyncio.run(cache.get())
    fetcher.payload = [{"language": "rust", "version": "1.68.2"}]
    clock.advance(61)

    runtimes = asyncio.run(cache.get())
    assert [r.language for r in runtimes] == ["rust"]


def test_empty_directory_is_cached():
    fetcher = CountingFetcher(payload=[])
    cache = RuntimeCache(fetcher, clock=FakeClock())

    assert asyncio.run(cache.get()) == []
    assert asyncio.run(cache.get()) == []
    assert fetcher.calls == 1


def test_fetch_failure_propagates_and_leaves_cache_empty():
    fetcher = CountingFetcher(error=httpx.ConnectError("Connection refused"))
    cache = RuntimeCache(fetcher, clock=FakeClock())

    with pytest.raises(httpx.ConnectError):
        asyncio.run(cache.get())
    assert cache.is_valid() is False

    # no stale fallback, no retry: the next call fetches again
    with pytest.raises(httpx.ConnectError):
        asyncio.run(cache.get())
    assert fetcher.calls == 2


def test_failed_refresh_after_expiry_does_not_serve_stale_data():
    fetcher = CountingFetcher()
    clock = FakeClock()
    cache = RuntimeCache(fetcher, ttl=60, clock=clock)

    asyncio.run(cache.get())
    clock.advance(120)
    fetcher.error = RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(cache.get())


def test_entries_without_language_are_skipped():
    fetcher = CountingFetcher(payload=[{"version": "1.0"}, None, {"language": "python", "version": "3.10.0"}])
    cache = RuntimeCache(fetcher, clock=FakeClock())

    runtimes = asyncio.run(cache.get())

    assert [r.language for r in runtimes] == ["python"]
    assert cache.is_valid() is True


def test_entry_without_version_is_kept():
    cache = RuntimeCache(CountingFetcher(payload=[{"language": "bash", "version": None}]), clock=FakeClock())

    [runtime] = asyncio.run(cache.get())

    assert runtime == RuntimeDescriptor("bash", None, ())


def test_invalidate_forces_refetch():
    fetcher = CountingFetcher()
    cache = RuntimeCache(fetcher, clock=FakeClock())

    asyncio.run(cache.get())
    cache.invalidate()
    asyncio.run(cache.get())

    assert fetcher.calls == 2


def test_descriptor_matches_language_only():
    runtime = RuntimeDescriptor.from_dict({"language": "c++", "version": "10.2.0", "aliases": ["cpp"]})
    assert runtime.matches("c++")
    assert not runtime.matches("cpp")
