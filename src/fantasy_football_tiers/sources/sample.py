"""Bundled static rankings used when no live or cached data is available."""

from __future__ import annotations

import csv
import io
import logging
import threading
from dataclasses import replace
from importlib import resources
from typing import TYPE_CHECKING

from fantasy_football_tiers.domain.errors import InvalidArgumentError
from fantasy_football_tiers.domain.player import FLEX_POSITIONS, PlayerRecord, Position

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

_RESOURCE = "sample_rankings.csv"


def _parse_expert_ranks(raw: str | None) -> tuple[float, ...]:
    if not raw:
        return ()
    return tuple(float(part) for part in raw.split(";") if part.strip())


def parse_sample_rows(rows: Iterable[dict[str, str]]) -> list[tuple[PlayerRecord, float]]:
    """Parse CSV rows into ``(record, overall_rank)`` pairs, skipping bad rows."""
    parsed: list[tuple[PlayerRecord, float]] = []
    for row in rows:
        normalized = {k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}
        name = normalized.get("name", "")
        try:
            record = PlayerRecord(
                id=normalized["id"],
                name=name,
                team=normalized.get("team") or "FA",
                position=Position.parse(normalized["position"]),
                average_rank=float(normalized["average_rank"]),
                standard_deviation=float(normalized.get("std_dev") or 0.0),
                expert_ranks=_parse_expert_ranks(normalized.get("expert_ranks")),
            )
            overall_rank = float(normalized.get("overall_rank") or record.average_rank)
        except (KeyError, ValueError, InvalidArgumentError) as e:
            logger.warning("Skipping sample row %r: %s", name or "?", e)
            continue
        parsed.append((record, overall_rank))
    return parsed


class SampleDataset:
    """Static per-position player lists loaded once from the bundled CSV.

    FLEX and OVERALL lists are assembled from the per-position rows and
    re-ranked by overall rank, so ``average_rank`` on those records is the
    overall rank rather than the position rank.
    """

    def __init__(self, rows: Iterable[dict[str, str]] | None = None) -> None:
        self._rows = rows
        self._by_position: dict[Position, tuple[PlayerRecord, ...]] | None = None
        self._lock = threading.Lock()

    def _load(self) -> dict[Position, tuple[PlayerRecord, ...]]:
        with self._lock:
            if self._by_position is not None:
                return self._by_position
            rows = self._rows
            if rows is None:
                text = resources.files("fantasy_football_tiers.sources.data").joinpath(_RESOURCE).read_text()
                rows = csv.DictReader(io.StringIO(text))
            parsed = parse_sample_rows(rows)
            self._by_position = _group(parsed)
            logger.debug("Loaded %d sample players", len(parsed))
            return self._by_position

    def players(self, position: Position) -> list[PlayerRecord]:
        return list(self._load().get(position, ()))


def _group(parsed: list[tuple[PlayerRecord, float]]) -> dict[Position, tuple[PlayerRecord, ...]]:
    by_position: dict[Position, list[PlayerRecord]] = {}
    for record, _ in parsed:
        by_position.setdefault(record.position, []).append(record)

    grouped = {pos: tuple(sorted(records, key=lambda p: p.average_rank)) for pos, records in by_position.items()}

    overall = sorted(parsed, key=lambda pair: pair[1])
    grouped[Position.OVERALL] = tuple(replace(record, average_rank=rank) for record, rank in overall)
    grouped[Position.FLEX] = tuple(
        replace(record, average_rank=rank) for record, rank in overall if record.position in FLEX_POSITIONS
    )
    return grouped
