from dataclasses import dataclass

from fantasy_football_tiers.domain.player import PlayerRecord


@dataclass(frozen=True)
class TierGroup:
    tier_number: int
    players: tuple[PlayerRecord, ...]
    min_rank: int  # 1-based position in the sorted list
    max_rank: int
    avg_rank: float
    label: str
    color: str

    @property
    def player_count(self) -> int:
        return len(self.players)
