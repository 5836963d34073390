from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fantasy_football_tiers.cli import app as app_module
from fantasy_football_tiers.cli.app import app
from fantasy_football_tiers.config import create_config
from fantasy_football_tiers.domain.result import Ok
from fantasy_football_tiers.services.player_data import PlayerDataService
from tests.fakes.sources import FakeClock, FakePlayerSource, failing, make_players

runner = CliRunner()


@pytest.fixture
def install_source(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, clock: FakeClock, clean_env: None
) -> Callable[[FakePlayerSource], None]:
    def _install(source: FakePlayerSource) -> None:
        def _build(yaml_path: str) -> PlayerDataService:
            cfg = create_config(yaml_path=str(tmp_path / "missing.yaml"))
            return PlayerDataService(cfg, source=source, clock=clock)

        monkeypatch.setattr(app_module, "build_service", _build)

    return _install


class TestQueryCommand:
    def test_shows_players(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource([Ok(make_players(12))]))
        result = runner.invoke(app, ["query", "rb", "--scoring", "ppr"])
        assert result.exit_code == 0, result.output
        assert "12 players from api" in result.output
        assert "Player p1" in result.output

    def test_limit(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource([Ok(make_players(12))]))
        result = runner.invoke(app, ["query", "rb", "-n", "2"])
        assert result.exit_code == 0, result.output
        assert "Player p2" in result.output
        assert "Player p3" not in result.output

    def test_sample_fallback_warns(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource([failing("HTTP 503")], sample=make_players(4, prefix="s")))
        result = runner.invoke(app, ["query", "te"])
        assert result.exit_code == 0, result.output
        assert "from sample" in result.output
        assert "Using sample data" in result.output

    def test_unknown_position_exits_1(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource())
        result = runner.invoke(app, ["query", "LB"])
        assert result.exit_code == 1
        assert "Unknown position" in result.output

    def test_unavailable_exits_1(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource([failing("down")]))
        result = runner.invoke(app, ["query", "qb"])
        assert result.exit_code == 1
        assert "No cached, live, or sample data" in result.output


    def test_bad_source_config_exits_1(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, clean_env: None
    ) -> None:
        monkeypatch.setenv("FFTIERS__SOURCE__TIMEOUT", "abc")
        result = runner.invoke(app, ["query", "rb", "--config", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "source.timeout" in result.output


class TestTiersCommand:
    def test_prints_tiers(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource([Ok(make_players(12))]))
        result = runner.invoke(app, ["tiers", "rb", "--tiers", "3"])
        assert result.exit_code == 0, result.output
        assert "Tier 1: Elite" in result.output
        assert "Tier 3: Very Good" in result.output
        assert "Tier 4" not in result.output

    def test_invalid_tier_count(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource([Ok(make_players(12))]))
        result = runner.invoke(app, ["tiers", "rb", "--tiers", "0"])
        assert result.exit_code == 1
        assert "tier_count" in result.output


class TestRefreshAndStatsCommands:
    def test_refresh(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        source = FakePlayerSource([Ok(make_players(5))])
        install_source(source)
        result = runner.invoke(app, ["refresh", "wr", "-s", "half"])
        assert result.exit_code == 0, result.output
        assert "Refreshed 5 players" in result.output
        assert len(source.calls) == 1

    def test_stats(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource([Ok(make_players(8))]))
        result = runner.invoke(app, ["stats", "rb", "wr"])
        assert result.exit_code == 0, result.output
        assert "Player cache: 2/64 entries" in result.output
        assert "Tier cache" in result.output

    def test_watch_for_fixed_duration(self, install_source: Callable[[FakePlayerSource], None]) -> None:
        install_source(FakePlayerSource([Ok(make_players(3))]))
        result = runner.invoke(app, ["watch", "rb", "--interval", "0.01", "--duration", "0.05"])
        assert result.exit_code == 0, result.output
        assert "Updated just now" in result.output


class TestCallback:
    def test_no_command_exits_cleanly(self) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code == 0
