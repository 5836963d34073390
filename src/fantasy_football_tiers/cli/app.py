import time
from typing import Annotated

import typer

from fantasy_football_tiers.cli._logging import configure_logging
from fantasy_football_tiers.cli._output import (
    console,
    print_cache_stats,
    print_data_result,
    print_error,
    print_tiers,
)
from fantasy_football_tiers.config import ConfigError, create_config
from fantasy_football_tiers.domain.errors import InvalidArgumentError, UnavailableError
from fantasy_football_tiers.services.player_data import PlayerDataService

app = typer.Typer(name="ffdata", help="Fantasy football rankings — cached acquisition and tiers")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging")] = False,
) -> None:
    """Fantasy football rankings — cached acquisition and tiers."""
    configure_logging(verbose=verbose)
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


_PositionArg = Annotated[str, typer.Argument(help="Position: QB, RB, WR, TE, K, DST, FLEX or OVERALL")]
_ScoringOpt = Annotated[str, typer.Option("--scoring", "-s", help="Scoring format: standard, ppr or half-ppr")]
_ConfigOpt = Annotated[str, typer.Option("--config", help="Path to YAML config file")]
_LimitOpt = Annotated[int | None, typer.Option("--limit", "-n", help="Show at most this many players")]


def build_service(yaml_path: str) -> PlayerDataService:
    return PlayerDataService(create_config(yaml_path=yaml_path))


@app.command()
def query(
    position: _PositionArg,
    scoring: _ScoringOpt = "ppr",
    config: _ConfigOpt = "ffdata.yaml",
    limit: _LimitOpt = None,
) -> None:
    """Show the best currently-available rankings for a position."""
    try:
        with build_service(config) as service:
            result = service.query(position, scoring)
            print_data_result(result, service.status_display(position, scoring), limit)
    except (InvalidArgumentError, UnavailableError, ConfigError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None


@app.command()
def tiers(
    position: _PositionArg,
    scoring: _ScoringOpt = "ppr",
    count: Annotated[int, typer.Option("--tiers", "-t", help="Number of tiers")] = 6,
    config: _ConfigOpt = "ffdata.yaml",
) -> None:
    """Group a position's rankings into tiers."""
    try:
        with build_service(config) as service:
            result, groups = service.tiers(position, scoring, count)
            print_data_result(result, service.status_display(position, scoring), limit=0)
            print_tiers(groups)
    except (InvalidArgumentError, UnavailableError, ConfigError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None


@app.command()
def refresh(
    position: _PositionArg,
    scoring: _ScoringOpt = "ppr",
    config: _ConfigOpt = "ffdata.yaml",
) -> None:
    """Force a live fetch, falling back to cached or sample data on failure."""
    try:
        with build_service(config) as service:
            players = service.refresh(position, scoring)
            status = service.status_display(position, scoring)
            console.print(
                f"Refreshed [bold]{len(players)}[/bold] players"
                f" ([{status.color}]{status.message}[/{status.color}])"
            )
    except (InvalidArgumentError, UnavailableError, ConfigError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None


@app.command()
def watch(
    positions: Annotated[list[str], typer.Argument(help="Positions to keep fresh")],
    scoring: _ScoringOpt = "ppr",
    interval: Annotated[float, typer.Option("--interval", help="Seconds between status lines")] = 60.0,
    duration: Annotated[float | None, typer.Option("--duration", help="Stop after this many seconds")] = None,
    config: _ConfigOpt = "ffdata.yaml",
) -> None:
    """Keep positions cached with background refresh and print their status."""
    try:
        with build_service(config) as service:
            for position in positions:
                service.query(position, scoring)
            service.start()
            started = time.monotonic()
            while duration is None or time.monotonic() - started < duration:
                for position in positions:
                    status = service.status_display(position, scoring)
                    console.print(f"{position.upper():<8} [{status.color}]{status.message}[/{status.color}]")
                time.sleep(interval if duration is None else min(interval, duration))
    except KeyboardInterrupt:
        console.print("Stopped.")
    except (InvalidArgumentError, UnavailableError, ConfigError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None


@app.command()
def stats(
    positions: Annotated[list[str] | None, typer.Argument(help="Positions to load before reporting")] = None,
    scoring: _ScoringOpt = "ppr",
    count: Annotated[int, typer.Option("--tiers", "-t", help="Number of tiers to compute per position")] = 6,
    config: _ConfigOpt = "ffdata.yaml",
) -> None:
    """Load positions, tier them, and report cache statistics."""
    try:
        with build_service(config) as service:
            for position in positions or []:
                service.tiers(position, scoring, count)
            print_cache_stats("Player cache", service.cache_stats())
            print_cache_stats("Tier cache", service.tier_stats())
    except (InvalidArgumentError, UnavailableError, ConfigError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None
