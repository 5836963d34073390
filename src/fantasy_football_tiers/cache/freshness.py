"""In-process freshness cache for ranked player lists.

One immutable ``CacheEntry`` is held per ``(position, scoring_format)`` key.
Entries are replaced wholesale, never mutated, so readers always observe a
complete entry even while a refresh for the same key is running.

Freshness is derived from the entry timestamp and the policy of the key's
data class:

    fresh    age < fresh_window
    stale    fresh_window <= age < hard_expiry   (servable as a fallback)
    expired  age >= hard_expiry                  (never served)
    missing  no entry

Usage:
    cache = FreshnessCache(default_policies())
    cache.set("RB", "ppr", players, DataSource.API)
    entry = cache.get("RB", "ppr")
    if cache.needs_refresh("RB", "ppr"):
        ...
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fantasy_football_tiers.cache.lru import LruStore
from fantasy_football_tiers.domain.cache import (
    CacheEntry,
    CacheKey,
    CacheStats,
    CacheStatus,
    DataClass,
    DataSource,
    StatusDisplay,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from fantasy_football_tiers.domain.player import PlayerRecord, Position, ScoringFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FreshnessPolicy:
    """Thresholds for one data class, in seconds."""

    fresh_window: float
    hard_expiry: float
    max_entries: int
    refresh_interval: float

    def __post_init__(self) -> None:
        if self.fresh_window <= 0:
            raise ValueError(f"fresh_window must be > 0, got {self.fresh_window}")
        if self.hard_expiry < self.fresh_window:
            raise ValueError(f"hard_expiry ({self.hard_expiry}) must be >= fresh_window ({self.fresh_window})")
        if self.max_entries <= 0:
            raise ValueError(f"max_entries must be > 0, got {self.max_entries}")
        if self.refresh_interval <= 0:
            raise ValueError(f"refresh_interval must be > 0, got {self.refresh_interval}")


def default_policies() -> dict[DataClass, FreshnessPolicy]:
    # Aggregate views are more expensive upstream, so they stay fresh longer.
    return {
        DataClass.POSITION: FreshnessPolicy(
            fresh_window=5 * 60, hard_expiry=24 * 3600, max_entries=48, refresh_interval=5 * 60
        ),
        DataClass.AGGREGATE: FreshnessPolicy(
            fresh_window=10 * 60, hard_expiry=24 * 3600, max_entries=16, refresh_interval=10 * 60
        ),
    }


_STATUS_COLORS = {
    CacheStatus.FRESH: "green",
    CacheStatus.STALE: "yellow",
    CacheStatus.EXPIRED: "red",
    CacheStatus.MISSING: "grey50",
}


def format_age(seconds: float) -> str:
    minutes = int(seconds // 60)
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "just now"


class FreshnessCache:
    """Keyed store of immutable cache entries with per-data-class LRU eviction.

    Each data class gets its own LRU store, so keys of different classes never
    evict each other or share a lock. A missing key is never an error.
    """

    def __init__(
        self,
        policies: Mapping[DataClass, FreshnessPolicy] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policies = dict(policies or default_policies())
        missing = set(DataClass) - set(self._policies)
        if missing:
            raise ValueError(f"Missing freshness policy for: {', '.join(sorted(missing))}")
        self._clock = clock
        self._stores: dict[DataClass, LruStore[CacheKey, CacheEntry]] = {
            data_class: LruStore(policy.max_entries, clock=clock) for data_class, policy in self._policies.items()
        }

    def policy_for(self, key: CacheKey) -> FreshnessPolicy:
        return self._policies[key.data_class]

    @property
    def policies(self) -> Mapping[DataClass, FreshnessPolicy]:
        return dict(self._policies)

    def _store(self, key: CacheKey) -> LruStore[CacheKey, CacheEntry]:
        return self._stores[key.data_class]

    def get(self, position: str | Position, scoring_format: str | ScoringFormat) -> CacheEntry | None:
        key = CacheKey.of(position, scoring_format)
        return self._store(key).get(key)

    def set(
        self,
        position: str | Position,
        scoring_format: str | ScoringFormat,
        data: Sequence[PlayerRecord],
        source: DataSource = DataSource.API,
        *,
        captured_at: float | None = None,
    ) -> CacheEntry:
        """Insert a new entry and return whichever entry is current afterwards.

        ``captured_at`` defaults to now. A candidate older than the entry
        already stored is discarded, so timestamps for a key never go backwards.
        """
        key = CacheKey.of(position, scoring_format)
        timestamp = self._clock() if captured_at is None else captured_at
        candidate = CacheEntry(key=key, data=tuple(data), timestamp=timestamp, source=source)
        current, evicted = self._store(key).put(
            key, candidate, replace_if=lambda existing: existing.timestamp <= candidate.timestamp
        )
        if evicted is not None:
            logger.debug("Evicted least-recently-used cache entry %s", evicted)
        if current is not candidate:
            logger.info(
                "Discarded %s data for %s captured at %.3f; newer entry from %.3f already cached",
                source,
                key,
                candidate.timestamp,
                current.timestamp,
            )
        else:
            logger.debug("Cached %d players for %s (source=%s)", len(candidate.data), key, source)
        return current

    def remove(self, position: str | Position, scoring_format: str | ScoringFormat) -> None:
        key = CacheKey.of(position, scoring_format)
        if self._store(key).pop(key) is not None:
            logger.debug("Invalidated cache entry %s", key)

    def clear(self) -> None:
        for store in self._stores.values():
            store.clear()

    def status(self, position: str | Position, scoring_format: str | ScoringFormat) -> CacheStatus:
        key = CacheKey.of(position, scoring_format)
        return self.entry_status(key, self._store(key).peek(key))

    def entry_status(self, key: CacheKey, entry: CacheEntry | None) -> CacheStatus:
        if entry is None:
            return CacheStatus.MISSING
        policy = self.policy_for(key)
        age = self._clock() - entry.timestamp
        if age < policy.fresh_window:
            return CacheStatus.FRESH
        if age < policy.hard_expiry:
            return CacheStatus.STALE
        return CacheStatus.EXPIRED

    def is_fresh(self, position: str | Position, scoring_format: str | ScoringFormat) -> bool:
        return self.status(position, scoring_format) is CacheStatus.FRESH

    def needs_refresh(self, position: str | Position, scoring_format: str | ScoringFormat) -> bool:
        return self.status(position, scoring_format) is not CacheStatus.FRESH

    def get_status_display(self, position: str | Position, scoring_format: str | ScoringFormat) -> StatusDisplay:
        key = CacheKey.of(position, scoring_format)
        entry = self._store(key).peek(key)
        status = self.entry_status(key, entry)
        if status is CacheStatus.FRESH and entry is not None:
            message = f"Updated {format_age(self._clock() - entry.timestamp)}"
        elif status is CacheStatus.STALE and entry is not None:
            message = f"Cached {format_age(self._clock() - entry.timestamp)}"
        elif status is CacheStatus.EXPIRED:
            message = "Data expired"
        else:
            message = "No cached data"
        return StatusDisplay(status=status, message=message, color=_STATUS_COLORS[status])

    def keys(self) -> list[CacheKey]:
        return [key for store in self._stores.values() for key in store.keys()]

    def cleanup_expired(self) -> int:
        """Drop entries past their hard expiry. Returns the number removed."""
        removed = 0
        for store in self._stores.values():
            for entry in store.values():
                if self.entry_status(entry.key, entry) is CacheStatus.EXPIRED and store.discard(entry.key, entry):
                    removed += 1
        if removed:
            logger.info("Removed %d expired cache entries", removed)
        return removed

    def stats(self) -> CacheStats:
        per_class = [store.stats() for store in self._stores.values()]
        return CacheStats(
            size=sum(s.size for s in per_class),
            max_size=sum(s.max_size for s in per_class),
            hits=sum(s.hits for s in per_class),
            misses=sum(s.misses for s in per_class),
        )
