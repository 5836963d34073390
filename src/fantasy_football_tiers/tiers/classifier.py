from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING

from fantasy_football_tiers.cache.lru import LruStore
from fantasy_football_tiers.domain.cache import CacheStats, player_checksum
from fantasy_football_tiers.domain.errors import InvalidArgumentError
from fantasy_football_tiers.domain.player import ScoringFormat
from fantasy_football_tiers.domain.tier import TierGroup

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from fantasy_football_tiers.domain.player import PlayerRecord

logger = logging.getLogger(__name__)

TIER_COLORS = (
    "#FF073A",
    "#FFB800",
    "#39FF14",
    "#00F5FF",
    "#BF00FF",
    "#00FFBF",
    "#4B5563",
    "#374151",
    "#1F2937",
    "#111827",
)

TIER_LABELS = (
    "Elite",
    "Excellent",
    "Very Good",
    "Good",
    "Solid",
    "Decent",
    "Deep",
    "Late Round",
    "Waiver Wire",
    "Bench",
)

# (position, scoring format, tier count) combinations worth pre-computing.
COMMON_TIER_CONFIGS: tuple[tuple[str, str, int], ...] = (
    ("QB", "PPR", 6),
    ("RB", "PPR", 8),
    ("WR", "PPR", 8),
    ("TE", "PPR", 6),
    ("FLEX", "PPR", 10),
    ("OVERALL", "PPR", 12),
)

DEFAULT_MAX_ENTRIES = 100
DEFAULT_TTL_SECONDS = 30 * 60


def tier_color(tier_number: int) -> str:
    return TIER_COLORS[min(tier_number, len(TIER_COLORS)) - 1]


def tier_label(tier_number: int) -> str:
    return TIER_LABELS[min(tier_number, len(TIER_LABELS)) - 1]


def compute_tiers(players: Sequence[PlayerRecord], tier_count: int) -> list[TierGroup]:
    """Partition players into contiguous, equally sized rank bands.

    Players are ordered by ``average_rank`` (stable, so ties keep input
    order) and sliced into ``ceil(n / tier_count)``-sized groups. The last
    group may be shorter, and fewer than ``tier_count`` groups are produced
    when there are not enough players. ``min_rank``/``max_rank`` are 1-based
    positions in the sorted list.
    """
    if tier_count <= 0:
        raise InvalidArgumentError(f"tier_count must be > 0, got {tier_count}")
    if not players:
        return []

    ordered = sorted(players, key=lambda p: p.average_rank)
    per_tier = math.ceil(len(ordered) / tier_count)

    tiers: list[TierGroup] = []
    for index in range(tier_count):
        start = index * per_tier
        if start >= len(ordered):
            break
        end = min(start + per_tier, len(ordered))
        members = tuple(ordered[start:end])
        tier_number = index + 1
        tiers.append(
            TierGroup(
                tier_number=tier_number,
                players=members,
                min_rank=start + 1,
                max_rank=end,
                avg_rank=sum(p.average_rank for p in members) / len(members),
                label=tier_label(tier_number),
                color=tier_color(tier_number),
            )
        )
    return tiers


class TierClassifier:
    """Memoizing front for ``compute_tiers``.

    Results are keyed by the structural checksum of the player list plus the
    tier count and scoring format, so equal lists produced by separate calls
    share a slot. Slots expire after ``ttl_seconds`` and are evicted
    least-recently-used beyond ``max_entries``.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._memo: LruStore[str, tuple[TierGroup, ...]] = LruStore(max_entries, ttl_seconds=ttl_seconds, clock=clock)
        self._ttl = ttl_seconds

    @staticmethod
    def cache_key(
        players: Sequence[PlayerRecord], tier_count: int, scoring_format: str | ScoringFormat | None = None
    ) -> str:
        fmt = ScoringFormat.parse(scoring_format) if scoring_format is not None else "default"
        return f"{player_checksum(players)}:{tier_count}:{fmt}"

    def classify(
        self,
        players: Sequence[PlayerRecord],
        tier_count: int,
        scoring_format: str | ScoringFormat | None = None,
    ) -> list[TierGroup]:
        if tier_count <= 0:
            raise InvalidArgumentError(f"tier_count must be > 0, got {tier_count}")
        if not players:
            return []

        key = self.cache_key(players, tier_count, scoring_format)
        cached = self._memo.get(key)
        if cached is not None:
            logger.debug("Tier cache hit for %s", key)
            return list(cached)

        tiers = compute_tiers(players, tier_count)
        self._memo.put(key, tuple(tiers))
        logger.debug("Computed %d tiers for %d players (%s)", len(tiers), len(players), key)
        return tiers

    def warm(
        self,
        players_by_key: Mapping[tuple[str, str], Sequence[PlayerRecord]],
        configs: Iterable[tuple[str, str, int]] = COMMON_TIER_CONFIGS,
    ) -> int:
        """Pre-compute tiers for each ``(position, scoring, tiers)`` config with data available."""
        warmed = 0
        for position, scoring, tier_count in configs:
            players = players_by_key.get((position, scoring))
            if players:
                self.classify(players, tier_count, scoring)
                warmed += 1
        logger.info("Warmed tier cache with %d configurations", warmed)
        return warmed

    def clear(self) -> None:
        self._memo.clear()

    def stats(self) -> CacheStats:
        return self._memo.stats()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl
