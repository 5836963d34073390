import pytest

from fantasy_football_tiers.cache.lru import LruStore
from tests.fakes.sources import FakeClock


class TestLruStore:
    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError, match="max_size"):
            LruStore(0)

    def test_evicts_least_recently_accessed(self) -> None:
        store: LruStore[str, int] = LruStore(2)
        store.put("a", 1)
        store.put("b", 2)
        assert store.get("a") == 1
        _, evicted = store.put("c", 3)
        assert evicted == "b"
        assert store.keys() == ["a", "c"]

    def test_put_on_existing_key_counts_as_access(self) -> None:
        store: LruStore[str, int] = LruStore(2)
        store.put("a", 1)
        store.put("b", 2)
        store.put("a", 10)
        store.put("c", 3)
        assert "a" in store
        assert "b" not in store

    def test_replace_if_keeps_existing(self) -> None:
        store: LruStore[str, int] = LruStore(2)
        store.put("a", 5)
        current, _ = store.put("a", 3, replace_if=lambda existing: existing <= 3)
        assert current == 5
        assert store.peek("a") == 5

    def test_ttl_expiry_counts_as_miss(self) -> None:
        clock = FakeClock()
        store: LruStore[str, int] = LruStore(2, ttl_seconds=60, clock=clock)
        store.put("a", 1)
        clock.advance(59)
        assert store.get("a") == 1
        clock.advance(1)
        assert store.get("a") is None
        assert len(store) == 0
        stats = store.stats()
        assert (stats.hits, stats.misses) == (1, 1)

    def test_peek_does_not_touch(self) -> None:
        store: LruStore[str, int] = LruStore(2)
        store.put("a", 1)
        store.put("b", 2)
        store.peek("a")
        _, evicted = store.put("c", 3)
        assert evicted == "a"
        assert store.stats().hits == 0

    def test_discard_only_matching_value(self) -> None:
        store: LruStore[str, list[int]] = LruStore(2)
        old = [1]
        store.put("a", old)
        store.put("a", [2])
        assert store.discard("a", old) is False
        assert store.peek("a") == [2]

    def test_clear_resets_counters(self) -> None:
        store: LruStore[str, int] = LruStore(2)
        store.put("a", 1)
        store.get("a")
        store.get("z")
        store.clear()
        assert store.stats().size == 0
        assert store.stats().hit_rate is None
