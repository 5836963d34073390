import math
from dataclasses import dataclass, field
from enum import StrEnum

from fantasy_football_tiers.domain.errors import InvalidArgumentError


class Position(StrEnum):
    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    K = "K"
    DST = "DST"
    FLEX = "FLEX"
    OVERALL = "OVERALL"

    @property
    def is_aggregate(self) -> bool:
        return self in (Position.FLEX, Position.OVERALL)

    @classmethod
    def parse(cls, raw: "str | Position") -> "Position":
        if isinstance(raw, Position):
            return raw
        key = raw.strip().upper()
        key = _POSITION_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise InvalidArgumentError(f"Unknown position: {raw!r}") from None


_POSITION_ALIASES = {
    "DEF": "DST",
    "D/ST": "DST",
    "ALL": "OVERALL",
}

FLEX_POSITIONS = (Position.RB, Position.WR, Position.TE)


class ScoringFormat(StrEnum):
    STANDARD = "STANDARD"
    PPR = "PPR"
    HALF_PPR = "HALF_PPR"

    @property
    def api_value(self) -> str:
        return _SCORING_API_VALUES[self]

    @classmethod
    def parse(cls, raw: "str | ScoringFormat") -> "ScoringFormat":
        if isinstance(raw, ScoringFormat):
            return raw
        key = raw.strip().upper().replace("-", "_")
        key = _SCORING_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise InvalidArgumentError(f"Unknown scoring format: {raw!r}") from None


_SCORING_ALIASES = {
    "STD": "STANDARD",
    "HALF": "HALF_PPR",
}

_SCORING_API_VALUES = {
    ScoringFormat.STANDARD: "STD",
    ScoringFormat.PPR: "PPR",
    ScoringFormat.HALF_PPR: "HALF",
}


class ConsensusLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


def consensus_from_ranks(expert_ranks: tuple[float, ...]) -> ConsensusLevel:
    """Classify expert agreement from the spread of individual ranks."""
    if not expert_ranks:
        return ConsensusLevel.UNKNOWN
    if len(expert_ranks) < 3:
        return ConsensusLevel.LOW
    return consensus_from_spread(max(expert_ranks) - min(expert_ranks))


def consensus_from_spread(spread: float) -> ConsensusLevel:
    if spread <= 10:
        return ConsensusLevel.HIGH
    if spread <= 25:
        return ConsensusLevel.MEDIUM
    return ConsensusLevel.LOW


@dataclass(frozen=True)
class PlayerRecord:
    id: str
    name: str
    team: str
    position: Position
    average_rank: float
    standard_deviation: float = 0.0
    expert_ranks: tuple[float, ...] = ()
    expert_count: int | None = None
    consensus_level: ConsensusLevel | None = None
    position_rank: int | None = None
    best_rank: float | None = None
    worst_rank: float | None = None
    bye_week: int | None = None
    adp: float | None = None
    upstream_tier: int | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.average_rank is None or not math.isfinite(self.average_rank) or self.average_rank < 0:
            raise InvalidArgumentError(
                f"Player {self.name!r}: average_rank must be a finite number >= 0, got {self.average_rank}"
            )
        if not math.isfinite(self.standard_deviation) or self.standard_deviation < 0:
            raise InvalidArgumentError(
                f"Player {self.name!r}: standard_deviation must be a finite number >= 0, got {self.standard_deviation}"
            )
        # Frozen, so derived fields are filled through object.__setattr__.
        if self.expert_count is None:
            object.__setattr__(self, "expert_count", len(self.expert_ranks))
        if self.consensus_level is None:
            object.__setattr__(self, "consensus_level", consensus_from_ranks(self.expert_ranks))
