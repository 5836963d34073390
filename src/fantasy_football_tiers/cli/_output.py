from rich.console import Console
from rich.table import Table

from fantasy_football_tiers.domain.cache import CacheStats, StatusDisplay
from fantasy_football_tiers.domain.tier import TierGroup
from fantasy_football_tiers.orchestration.orchestrator import DataResult

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def print_data_result(result: DataResult, status: StatusDisplay, limit: int | None = None) -> None:
    updated = result.last_updated.strftime("%Y-%m-%d %H:%M:%S UTC") if result.last_updated else "sample data"
    console.print(
        f"[bold]{len(result.players)}[/bold] players from [bold]{result.data_source}[/bold]"
        f" ([{status.color}]{status.message}[/{status.color}], {updated})"
    )
    if result.warning is not None:
        err_console.print(f"[yellow bold]Warning:[/yellow bold] {result.warning.message}")

    players = result.players if limit is None else result.players[:limit]
    if not players:
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Rank", justify="right")
    table.add_column("Player")
    table.add_column("Team")
    table.add_column("Pos")
    table.add_column("Avg", justify="right")
    table.add_column("StdDev", justify="right")
    table.add_column("Consensus")
    for index, player in enumerate(players, start=1):
        table.add_row(
            str(index),
            player.name,
            player.team,
            player.position,
            f"{player.average_rank:.1f}",
            f"{player.standard_deviation:.1f}",
            str(player.consensus_level),
        )
    console.print(table)


def print_tiers(tiers: list[TierGroup]) -> None:
    if not tiers:
        console.print("No players to tier.")
        return
    for tier in tiers:
        console.print(
            f"[bold {tier.color}]Tier {tier.tier_number}: {tier.label}[/bold {tier.color}]"
            f"  ranks {tier.min_rank}-{tier.max_rank}, avg {tier.avg_rank:.1f}"
        )
        console.print("  " + ", ".join(p.name for p in tier.players))


def print_cache_stats(label: str, stats: CacheStats) -> None:
    hit_rate = "n/a" if stats.hit_rate is None else f"{stats.hit_rate:.0%}"
    console.print(f"[bold]{label}[/bold]: {stats.size}/{stats.max_size} entries, hit rate {hit_rate}")
