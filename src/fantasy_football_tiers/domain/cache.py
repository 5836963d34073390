from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from fantasy_football_tiers.domain.player import PlayerRecord, Position, ScoringFormat


class DataSource(StrEnum):
    CACHE = "cache"
    API = "api"
    SAMPLE = "sample"


class CacheStatus(StrEnum):
    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"
    MISSING = "missing"


class DataClass(StrEnum):
    POSITION = "position"
    AGGREGATE = "aggregate"


@dataclass(frozen=True)
class CacheKey:
    position: Position
    scoring_format: ScoringFormat

    @classmethod
    def of(cls, position: str | Position, scoring_format: str | ScoringFormat) -> "CacheKey":
        return cls(Position.parse(position), ScoringFormat.parse(scoring_format))

    @property
    def data_class(self) -> DataClass:
        return DataClass.AGGREGATE if self.position.is_aggregate else DataClass.POSITION

    def __str__(self) -> str:
        return f"{self.position}:{self.scoring_format}"


def player_checksum(players: Sequence[PlayerRecord]) -> str:
    """Structural fingerprint of a player list: first, middle and last id plus length."""
    if not players:
        return "empty"
    first = players[0].id
    middle = players[len(players) // 2].id
    last = players[-1].id
    return f"{first}-{middle}-{last}-{len(players)}"


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    data: tuple[PlayerRecord, ...]
    timestamp: float
    source: DataSource
    checksum: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.checksum:
            object.__setattr__(self, "checksum", player_checksum(self.data))


@dataclass(frozen=True)
class StatusDisplay:
    status: CacheStatus
    message: str
    color: str


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_size: int
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float | None:
        total = self.hits + self.misses
        if total == 0:
            return None
        return self.hits / total
