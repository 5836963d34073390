import logging
from typing import Any

import httpx
import pytest
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_none

from fantasy_football_tiers.domain.errors import UpstreamError
from fantasy_football_tiers.domain.player import ConsensusLevel, Position, ScoringFormat
from fantasy_football_tiers.domain.result import Err, Ok
from fantasy_football_tiers.sources._retry import is_retryable
from fantasy_football_tiers.sources.fantasypros import FantasyProsSource, row_to_player
from fantasy_football_tiers.sources.sample import SampleDataset

_ROWS: list[dict[str, Any]] = [
    {
        "player_id": 16393,
        "player_name": "Christian McCaffrey",
        "player_team_id": "SF",
        "player_position_id": "RB",
        "rank_ecr": 1,
        "rank_std": 0.8,
        "rank_min": 1,
        "rank_max": 4,
        "pos_rank": "1",
        "player_bye_week": "9",
        "tier": 1,
    },
    {
        "player_id": 17240,
        "player_name": "Bijan Robinson",
        "player_team_id": "ATL",
        "player_position_id": "RB",
        "rank_ecr": 2,
        "rank_std": 2.5,
        "rank_min": 1,
        "rank_max": 22,
        "pos_rank": "2",
        "tier": 1,
    },
]


class FakeTransport(httpx.BaseTransport):
    def __init__(self, status_code: int, **response_kwargs: Any) -> None:
        self._status_code = status_code
        self._response_kwargs = response_kwargs
        self.requests: list[httpx.Request] = []

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self._status_code, **self._response_kwargs)


class FailNTransport(httpx.BaseTransport):
    """Raises a transport error for the first ``failures`` requests."""

    def __init__(self, failures: int, status_code: int, **response_kwargs: Any) -> None:
        self._failures = failures
        self._status_code = status_code
        self._response_kwargs = response_kwargs
        self.calls = 0

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.calls <= self._failures:
            raise httpx.ConnectError("connection refused")
        return httpx.Response(self._status_code, **self._response_kwargs)


def _no_wait_retry(fn: Any) -> Any:
    return retry(
        stop=stop_after_attempt(3),
        wait=wait_none(),
        retry=retry_if_exception(is_retryable),
        reraise=True,
    )(fn)


def _source(transport: httpx.BaseTransport, api_key: str = "secret") -> FantasyProsSource:
    return FantasyProsSource(
        api_key,
        season=2025,
        client=httpx.Client(transport=transport),
        retry=_no_wait_retry,
        sample=SampleDataset(rows=[]),
    )


class TestRowToPlayer:
    def test_maps_fields(self) -> None:
        player = row_to_player(_ROWS[0], 0)
        assert player.id == "16393"
        assert player.name == "Christian McCaffrey"
        assert player.team == "SF"
        assert player.position is Position.RB
        assert player.average_rank == 1.0
        assert player.standard_deviation == 0.8
        assert player.position_rank == 1
        assert player.bye_week == 9
        assert player.upstream_tier == 1
        assert player.consensus_level is ConsensusLevel.HIGH

    def test_consensus_from_rank_range(self) -> None:
        assert row_to_player(_ROWS[1], 1).consensus_level is ConsensusLevel.MEDIUM

    def test_defense_and_unknown_positions(self) -> None:
        assert row_to_player({"player_position_id": "DEF", "rank_ecr": 3}, 0).position is Position.DST
        assert row_to_player({"player_position_id": "LB", "rank_ecr": 3}, 0).position is Position.FLEX

    def test_missing_rank_falls_back_to_row_order(self) -> None:
        player = row_to_player({"player_name": "Nobody"}, 4)
        assert player.average_rank == 5.0
        assert player.id == "fp-4"
        assert player.consensus_level is ConsensusLevel.UNKNOWN


    def test_position_rank_digits_are_extracted(self) -> None:
        player = row_to_player({"player_name": "Kyren Williams", "rank_ecr": 14, "pos_rank": "RB12"}, 0)
        assert player.position_rank == 12

    def test_position_rank_without_digits_is_none(self) -> None:
        assert row_to_player({"rank_ecr": 14, "pos_rank": "RB"}, 0).position_rank is None


class TestFantasyProsSource:
    def test_fetch_builds_request(self) -> None:
        transport = FakeTransport(200, json={"players": _ROWS})
        result = _source(transport).fetch_players(Position.RB, ScoringFormat.HALF_PPR)

        assert isinstance(result, Ok)
        assert [p.name for p in result.value] == ["Christian McCaffrey", "Bijan Robinson"]
        request = transport.requests[0]
        assert request.url.path.endswith("/2025/consensus-rankings")
        assert request.url.params["scoring"] == "HALF"
        assert request.url.params["position"] == "RB"
        assert request.headers["x-api-key"] == "secret"

    def test_overall_requests_all(self) -> None:
        transport = FakeTransport(200, json=_ROWS)
        _source(transport).fetch_players(Position.OVERALL, ScoringFormat.PPR)
        assert transport.requests[0].url.params["position"] == "ALL"

    def test_missing_api_key_is_err_without_request(self) -> None:
        transport = FakeTransport(200, json=_ROWS)
        result = _source(transport, api_key="").fetch_players(Position.RB, ScoringFormat.PPR)
        assert isinstance(result, Err)
        assert "API key" in result.error.message
        assert transport.requests == []

    def test_http_status_is_err(self) -> None:
        transport = FakeTransport(503)
        result = _source(transport).fetch_players(Position.RB, ScoringFormat.PPR)
        assert result == Err(UpstreamError("HTTP 503", status_code=503))
        assert len(transport.requests) == 3

    def test_auth_failure_is_not_retried(self) -> None:
        transport = FakeTransport(401)
        result = _source(transport).fetch_players(Position.RB, ScoringFormat.PPR)
        assert result == Err(UpstreamError("HTTP 401", status_code=401))
        assert len(transport.requests) == 1

    def test_malformed_body_is_err(self) -> None:
        transport = FakeTransport(200, content=b"<html>nope</html>")
        result = _source(transport).fetch_players(Position.RB, ScoringFormat.PPR)
        assert isinstance(result, Err)
        assert result.error.message.startswith("Malformed response")

    def test_retries_transport_errors(self) -> None:
        transport = FailNTransport(2, 200, json=_ROWS)
        result = _source(transport).fetch_players(Position.RB, ScoringFormat.PPR)
        assert isinstance(result, Ok)
        assert transport.calls == 3

    def test_exhausted_retries_is_err(self) -> None:
        transport = FailNTransport(5, 200, json=_ROWS)
        result = _source(transport).fetch_players(Position.RB, ScoringFormat.PPR)
        assert isinstance(result, Err)
        assert "connection refused" in result.error.message

    def test_sample_fallback_delegates_to_dataset(self) -> None:
        source = FantasyProsSource(
            "k",
            client=httpx.Client(transport=FakeTransport(200)),
            sample=SampleDataset(
                rows=[{"id": "x", "name": "X", "team": "KC", "position": "TE", "average_rank": "1"}]
            ),
        )
        assert [p.id for p in source.sample_fallback(Position.TE)] == ["x"]

    def test_bad_rows_are_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        rows = [
            _ROWS[0],
            {"player_name": "Broken Rank", "player_position_id": "RB", "rank_ecr": "junk"},
            {"player_name": "Not A Number", "player_position_id": "RB", "rank_ecr": "NaN"},
            {"player_id": 1, "player_name": "James Cook", "player_position_id": "RB", "rank_ecr": 9, "pos_rank": "RB3"},
        ]
        transport = FakeTransport(200, json={"players": rows})
        with caplog.at_level(logging.WARNING):
            result = _source(transport).fetch_players(Position.RB, ScoringFormat.PPR)

        assert isinstance(result, Ok)
        assert [p.name for p in result.value] == ["Christian McCaffrey", "James Cook"]
        assert result.value[1].position_rank == 3
        assert sum("Skipping FantasyPros row" in msg for msg in caplog.messages) == 2

    def test_non_list_payload_is_err(self) -> None:
        transport = FakeTransport(200, json={"players": {"unexpected": True}})
        result = _source(transport).fetch_players(Position.RB, ScoringFormat.PPR)
        assert isinstance(result, Err)
        assert result.error.message.startswith("Malformed response")
