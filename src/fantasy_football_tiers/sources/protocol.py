"""Player source protocol for dependency injection."""

from typing import Protocol

from fantasy_football_tiers.domain.errors import UpstreamError
from fantasy_football_tiers.domain.player import PlayerRecord, Position, ScoringFormat
from fantasy_football_tiers.domain.result import Result


class PlayerSource(Protocol):
    """Provider of ranked player lists per (position, scoring format).

    ``fetch_players`` performs network I/O and must be bounded by a timeout.
    ``sample_fallback`` is synchronous and always returns the bundled static
    list, which may be empty when nothing is bundled for the position.
    """

    def fetch_players(
        self, position: Position, scoring_format: ScoringFormat
    ) -> Result[list[PlayerRecord], UpstreamError]: ...

    def sample_fallback(self, position: Position) -> list[PlayerRecord]: ...
