"""Unit tests for the in-memory SummaryCache."""

import threading

import pytest

from feedback_api.utils import summary_cache
from feedback_api.utils.summary_cache import CacheStats, SummaryCache, summary_key

QUESTION = "How was the retro?"


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def time(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def fake_time(monkeypatch: pytest.MonkeyPatch) -> FakeTime:
    fake = FakeTime()
    monkeypatch.setattr(summary_cache, "time", fake)
    return fake


def test_summary_key_is_stable_and_order_sensitive() -> None:
    base = summary_key(QUESTION, ["good", "bad"])

    assert base == summary_key(QUESTION, ["good", "bad"])
    assert base != summary_key(QUESTION, ["bad", "good"])
    assert base != summary_key(QUESTION, ["good", "bad"], salt="v2")
    assert summary_key("q", ["ab"]) != summary_key("q", ["a", "b"])


def test_hit_before_expiry(fake_time: FakeTime) -> None:
    cache = SummaryCache(ttl_seconds=10)
    cache.put(QUESTION, ["a"], {"key_takeaways": []})

    fake_time.advance(9)

    assert cache.get(QUESTION, ["a"]) == {"key_takeaways": []}
    assert cache.stats().hits == 1


def test_salt_separates_entries(fake_time: FakeTime) -> None:
    cache = SummaryCache()
    cache.put(QUESTION, ["a"], {"v": 1}, salt="v1")

    assert cache.get(QUESTION, ["a"], salt="v2") is None
    assert cache.get(QUESTION, ["a"], salt="v1") == {"v": 1}


def test_expired_entry_is_a_miss(fake_time: FakeTime) -> None:
    cache = SummaryCache(ttl_seconds=10)
    cache.put(QUESTION, ["a"], {"v": 1})

    fake_time.advance(10)

    assert cache.get(QUESTION, ["a"]) is None
    assert cache.stats() == CacheStats(entries=0, hits=0, misses=1, expired=1, evicted=0)


def test_least_recently_read_entry_is_evicted(fake_time: FakeTime) -> None:
    cache = SummaryCache(ttl_seconds=100, max_entries=2)
    cache.put(QUESTION, ["a"], {"v": "a"})
    cache.put(QUESTION, ["b"], {"v": "b"})
    cache.get(QUESTION, ["a"])

    cache.put(QUESTION, ["c"], {"v": "c"})

    assert cache.get(QUESTION, ["b"]) is None
    assert cache.get(QUESTION, ["a"]) == {"v": "a"}
    assert cache.stats().evicted == 1


def test_clear_resets_stats(fake_time: FakeTime) -> None:
    cache = SummaryCache()
    cache.put(QUESTION, ["a"], {"v": 1})
    cache.get(QUESTION, ["a"])

    cache.clear()

    assert cache.stats() == CacheStats()


def test_concurrent_puts_respect_max_entries() -> None:
    cache = SummaryCache(ttl_seconds=100, max_entries=50)

    def worker(offset: int) -> None:
        for i in range(100):
            cache.put(QUESTION, [f"{offset}-{i}"], {"i": i})

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.stats().entries == 50


@pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
def test_invalid_bounds(kwargs) -> None:
    with pytest.raises(ValueError):
        SummaryCache(**kwargs)
