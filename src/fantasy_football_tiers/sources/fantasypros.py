from __future__ import annotations

import datetime
import logging
import re
from collections.abc import Callable
from typing import Any

import httpx

from fantasy_football_tiers.domain.errors import InvalidArgumentError, UpstreamError
from fantasy_football_tiers.domain.player import (
    ConsensusLevel,
    PlayerRecord,
    Position,
    ScoringFormat,
    consensus_from_spread,
)
from fantasy_football_tiers.domain.result import Err, Ok, Result
from fantasy_football_tiers.sources._retry import default_http_retry
from fantasy_football_tiers.sources.sample import SampleDataset

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.fantasypros.com/public/v2/json/nfl"

_UPSTREAM_POSITION_IDS = {
    Position.OVERALL: "ALL",
}

_DIGITS = re.compile(r"\d+")


def _parse_response(response: httpx.Response) -> list[dict[str, Any]]:
    """Parse JSON response, handling both bare array and {"players": [...]} formats."""
    data = response.json()
    if isinstance(data, dict):
        data = data.get("players", [])
    if not isinstance(data, list):
        raise ValueError(f"expected a list of players, got {type(data).__name__}")
    return data


def _position_of(raw: object) -> Position:
    try:
        return Position.parse(str(raw or ""))
    except InvalidArgumentError:
        return Position.FLEX


def _float_or_none(raw: object) -> float | None:
    if raw is None or raw == "":
        return None
    return float(raw)  # type: ignore[arg-type]


def _int_or_none(raw: object) -> int | None:
    """Integer part of values like ``9``, ``"9"`` or ``"RB12"``; ``None`` when there are no digits."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, int):
        return raw
    match = _DIGITS.search(str(raw))
    return int(match.group()) if match else None


def row_to_player(row: dict[str, Any], index: int) -> PlayerRecord:
    """Map one consensus-rankings row to a ``PlayerRecord``."""
    average_rank = _float_or_none(row.get("rank_ecr")) or _float_or_none(row.get("rank_ave")) or float(index + 1)
    best = _float_or_none(row.get("rank_min"))
    worst = _float_or_none(row.get("rank_max"))
    consensus = ConsensusLevel.UNKNOWN
    if best is not None and worst is not None:
        consensus = consensus_from_spread(worst - best)
    return PlayerRecord(
        id=str(row.get("player_id") or f"fp-{index}"),
        name=str(row.get("player_name") or ""),
        team=str(row.get("player_team_id") or "FA"),
        position=_position_of(row.get("player_position_id")),
        average_rank=average_rank,
        standard_deviation=_float_or_none(row.get("rank_std")) or 0.0,
        consensus_level=consensus,
        position_rank=_int_or_none(row.get("pos_rank")),
        best_rank=best,
        worst_rank=worst,
        bye_week=_int_or_none(row.get("player_bye_week")),
        upstream_tier=_int_or_none(row.get("tier")),
    )


def _rows_to_players(rows: list[dict[str, Any]]) -> list[PlayerRecord]:
    players: list[PlayerRecord] = []
    for index, row in enumerate(rows):
        try:
            players.append(row_to_player(row, index))
        except (ValueError, TypeError, AttributeError) as e:
            name = row.get("player_name", "?") if isinstance(row, dict) else "?"
            logger.warning("Skipping FantasyPros row %d (%s): %s", index, name, e)
    return players


class FantasyProsSource:
    """Consensus rankings over HTTP, with the bundled sample as fallback.

    Network and parse failures are returned as ``Err(UpstreamError)``; this
    source never raises from ``fetch_players``.
    """

    def __init__(
        self,
        api_key: str = "",
        *,
        base_url: str = DEFAULT_BASE_URL,
        season: int | None = None,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
        retry: Callable[[Callable[..., Any]], Callable[..., Any]] | None = None,
        sample: SampleDataset | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._season = season or datetime.date.today().year
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)))
        self._fetch_with_retry = (retry or default_http_retry("FantasyPros rankings"))(self._do_fetch)
        self._sample = sample or SampleDataset()

    def _do_fetch(self, url: str, params: dict[str, str]) -> httpx.Response:
        response = self._client.get(
            url,
            params=params,
            headers={"x-api-key": self._api_key, "Accept": "application/json"},
        )
        response.raise_for_status()
        return response

    def fetch_players(
        self, position: Position, scoring_format: ScoringFormat
    ) -> Result[list[PlayerRecord], UpstreamError]:
        if not self._api_key:
            return Err(UpstreamError("FantasyPros API key not configured"))

        url = f"{self._base_url}/{self._season}/consensus-rankings"
        params = {
            "scoring": scoring_format.api_value,
            "position": _UPSTREAM_POSITION_IDS.get(position, position.value),
        }
        logger.debug("GET %s position=%s scoring=%s", url, params["position"], params["scoring"])
        try:
            response = self._fetch_with_retry(url, params)
            rows = _parse_response(response)
            players = _rows_to_players(rows)
        except httpx.HTTPStatusError as e:
            logger.warning("FantasyPros returned %d for %s/%s", e.response.status_code, position, scoring_format)
            return Err(UpstreamError(f"HTTP {e.response.status_code}", status_code=e.response.status_code))
        except httpx.HTTPError as e:
            logger.warning("FantasyPros request failed for %s/%s: %s", position, scoring_format, e)
            return Err(UpstreamError(str(e) or type(e).__name__))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Could not parse FantasyPros response for %s/%s: %s", position, scoring_format, e)
            return Err(UpstreamError(f"Malformed response: {e}"))

        logger.info("Fetched %d FantasyPros players for %s/%s", len(players), position, scoring_format)
        return Ok(players)

    def sample_fallback(self, position: Position) -> list[PlayerRecord]:
        return self._sample.players(position)

    def close(self) -> None:
        self._client.close()
