import threading

import pytest

from salon_finsight.cache import QueryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_values_are_reused_within_ttl() -> None:
    """A second request inside the TTL does not hit the loader."""
    clock = FakeClock()
    cache = QueryCache(ttl_seconds=5, clock=clock)
    calls = []

    def loader():
        calls.append(1)
        return len(calls)

    assert cache.get_or_load("org:payments", loader) == 1
    clock.now = 4.9
    assert cache.get_or_load("org:payments", loader) == 1
    assert cache.get("org:payments") == 1

    clock.now = 5.0
    assert cache.get("org:payments") is None
    assert cache.get_or_load("org:payments", loader) == 2
    assert len(calls) == 2


def test_failures_are_not_cached() -> None:
    cache = QueryCache(ttl_seconds=5, clock=FakeClock())

    def failing():
        raise RuntimeError("network down")

    with pytest.raises(RuntimeError):
        cache.get_or_load("k", failing)

    assert cache.get("k") is None
    assert cache.get_or_load("k", lambda: "ok") == "ok"


def test_invalidate_and_prefix() -> None:
    cache = QueryCache(ttl_seconds=5, clock=FakeClock())
    cache.get_or_load("payments:org-1:", lambda: 1)
    cache.get_or_load("expenses:org-1:", lambda: 2)
    cache.get_or_load("payments:org-2:", lambda: 3)
    assert len(cache) == 3

    cache.invalidate("expenses:org-1:")
    assert cache.get("expenses:org-1:") is None

    cache.invalidate_prefix("payments:")
    assert len(cache) == 0

    cache.get_or_load("x", lambda: 1)
    cache.clear()
    assert len(cache) == 0


def test_invalidation_during_load_is_not_undone() -> None:
    """A value loaded while its key was invalidated is returned but not stored."""
    cache = QueryCache(ttl_seconds=5, clock=FakeClock())

    def loader():
        cache.invalidate("k")
        return "stale"

    assert cache.get_or_load("k", loader) == "stale"
    assert cache.get("k") is None


def test_concurrent_requests_share_one_load() -> None:
    cache = QueryCache(ttl_seconds=60, clock=FakeClock())
    started = threading.Event()
    release = threading.Event()
    calls = []
    results = []

    def loader():
        calls.append(1)
        started.set()
        release.wait(timeout=5)
        return "value"

    def worker():
        results.append(cache.get_or_load("k", loader))

    first = threading.Thread(target=worker)
    first.start()
    started.wait(timeout=5)

    second = threading.Thread(target=worker)
    second.start()
    release.set()

    first.join(timeout=5)
    second.join(timeout=5)

    assert results == ["value", "value"]
    assert len(calls) == 1


def test_negative_ttl_is_rejected() -> None:
    with pytest.raises(ValueError):
        QueryCache(ttl_seconds=-1)
