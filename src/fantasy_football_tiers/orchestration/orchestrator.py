"""Cache-first acquisition of ranked player lists.

Read path for one ``(position, scoring_format)`` key:

    fresh entry          serve from cache, no upstream work
    stale entry          serve from cache now, refresh in the background
    missing or expired   wait (bounded) for a live fetch; on failure fall back
                         to the bundled sample, or raise UnavailableError

Concurrent refreshes of one key are coalesced: the first caller submits the
fetch and every later caller, foreground or background, waits on the same
``Future``. Upstream failures never escape as exceptions; they surface as a
``DataWarning`` on the result.

Usage:
    with AcquisitionOrchestrator(FreshnessCache(), FantasyProsSource(api_key)) as orchestrator:
        orchestrator.start_auto_refresh()
        result = orchestrator.query("RB", "ppr")
        print(result.data_source, len(result.players))
"""

from __future__ import annotations

import datetime
import logging
import threading
import time
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fantasy_football_tiers.domain.cache import CacheEntry, CacheKey, CacheStatus, DataClass, DataSource
from fantasy_football_tiers.domain.errors import DataWarning, UnavailableError, UpstreamError, WarningKind
from fantasy_football_tiers.domain.result import Err, Ok, Result
from fantasy_football_tiers.orchestration.scheduler import ScheduledTask

if TYPE_CHECKING:
    from collections.abc import Callable

    from fantasy_football_tiers.cache.freshness import FreshnessCache
    from fantasy_football_tiers.domain.player import PlayerRecord, Position, ScoringFormat
    from fantasy_football_tiers.sources.protocol import PlayerSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrchestratorSettings:
    fetch_timeout: float = 15.0
    max_workers: int = 4


@dataclass(frozen=True)
class DataResult:
    players: tuple[PlayerRecord, ...]
    data_source: DataSource
    cache_status: CacheStatus
    last_updated: datetime.datetime | None
    warning: DataWarning | None = None


@dataclass(frozen=True)
class RefreshOutcome:
    entry: CacheEntry | None
    error: UpstreamError | None = None


def _as_datetime(timestamp: float) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(timestamp, tz=datetime.UTC)


class AcquisitionOrchestrator:
    def __init__(
        self,
        cache: FreshnessCache,
        source: PlayerSource,
        settings: OrchestratorSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = cache
        self._source = source
        self._settings = settings or OrchestratorSettings()
        self._clock = clock
        self._executor = ThreadPoolExecutor(max_workers=self._settings.max_workers, thread_name_prefix="refresh")
        self._inflight: dict[CacheKey, Future[RefreshOutcome]] = {}
        self._inflight_lock = threading.RLock()
        self._failures: dict[CacheKey, UpstreamError] = {}
        self._watched: set[CacheKey] = set()
        self._state_lock = threading.Lock()
        self._tasks: dict[DataClass, ScheduledTask] = {}
        self._closed = False

    @property
    def cache(self) -> FreshnessCache:
        return self._cache

    # -- Caller operations ---------------------------------------------------

    def query(self, position: str | Position, scoring_format: str | ScoringFormat) -> DataResult:
        key = CacheKey.of(position, scoring_format)
        self._watch(key)

        entry = self._cache.get(key.position, key.scoring_format)
        status = self._cache.entry_status(key, entry)

        if entry is not None and status is CacheStatus.FRESH:
            return self._served(entry, DataSource.CACHE, status)

        if entry is not None and status is CacheStatus.STALE:
            with self._inflight_lock:
                if not self._closed:
                    self._submit_refresh(key)
            failure = self._last_failure(key)
            warning = None
            if failure is not None:
                warning = DataWarning(
                    WarningKind.STALE_SERVE,
                    f"Serving cached {key} data; last refresh failed: {failure.message}",
                )
            return self._served(entry, DataSource.CACHE, status, warning)

        outcome = self._await(key, self._submit_refresh(key))
        if outcome.entry is not None:
            return self._served(outcome.entry, DataSource.API, self._cache.entry_status(key, outcome.entry))
        return self._sample_or_unavailable(key, status, outcome.error)

    def refresh(self, position: str | Position, scoring_format: str | ScoringFormat) -> tuple[PlayerRecord, ...]:
        """Fetch regardless of freshness, joining any refresh already in flight."""
        key = CacheKey.of(position, scoring_format)
        self._watch(key)

        outcome = self._await(key, self._submit_refresh(key))
        if outcome.entry is not None:
            return outcome.entry.data

        entry = self._cache.get(key.position, key.scoring_format)
        status = self._cache.entry_status(key, entry)
        if entry is not None and status in (CacheStatus.FRESH, CacheStatus.STALE):
            logger.warning("Refresh of %s failed; keeping cached data from %s", key, _as_datetime(entry.timestamp))
            return entry.data
        return self._sample_or_unavailable(key, status, outcome.error).players

    def invalidate(self, position: str | Position, scoring_format: str | ScoringFormat) -> None:
        key = CacheKey.of(position, scoring_format)
        self._cache.remove(key.position, key.scoring_format)
        with self._state_lock:
            self._failures.pop(key, None)

    def clear_cache(self, position: str | Position, scoring_format: str | ScoringFormat) -> tuple[PlayerRecord, ...]:
        self.invalidate(position, scoring_format)
        return self.refresh(position, scoring_format)

    def watch(self, position: str | Position, scoring_format: str | ScoringFormat) -> None:
        """Register a key for auto-refresh without reading it."""
        self._watch(CacheKey.of(position, scoring_format))

    def watched_keys(self) -> list[CacheKey]:
        with self._state_lock:
            return sorted(self._watched, key=str)

    # -- Auto-refresh --------------------------------------------------------

    def start_auto_refresh(self) -> None:
        if self._closed:
            raise RuntimeError("Orchestrator is closed")
        for data_class, policy in self._cache.policies.items():
            task = self._tasks.get(data_class)
            if task is None:
                task = ScheduledTask(
                    f"refresh-{data_class}",
                    policy.refresh_interval,
                    lambda data_class=data_class: self.refresh_due(data_class),
                )
                self._tasks[data_class] = task
            task.start()

    def stop_auto_refresh(self) -> None:
        for task in self._tasks.values():
            task.stop()

    @property
    def auto_refresh_running(self) -> bool:
        return any(task.running for task in self._tasks.values())

    def refresh_due(self, data_class: DataClass | None = None) -> list[CacheKey]:
        """Start background refreshes for watched keys that need one."""
        started: list[CacheKey] = []
        for key in self.watched_keys():
            if data_class is not None and key.data_class is not data_class:
                continue
            if self._cache.needs_refresh(key.position, key.scoring_format):
                self._submit_refresh(key)
                started.append(key)
        if started:
            logger.debug("Background refresh started for %s", ", ".join(str(k) for k in started))
        return started

    def close(self) -> None:
        self.stop_auto_refresh()
        with self._inflight_lock:
            self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> AcquisitionOrchestrator:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- Internals -----------------------------------------------------------

    def _watch(self, key: CacheKey) -> None:
        with self._state_lock:
            self._watched.add(key)

    def _last_failure(self, key: CacheKey) -> UpstreamError | None:
        with self._state_lock:
            return self._failures.get(key)

    def _submit_refresh(self, key: CacheKey) -> Future[RefreshOutcome]:
        with self._inflight_lock:
            future = self._inflight.get(key)
            if future is not None:
                logger.debug("Joining in-flight refresh for %s", key)
                return future
            if self._closed:
                raise RuntimeError("Orchestrator is closed")
            future = self._executor.submit(self._do_refresh, key)
            self._inflight[key] = future
            future.add_done_callback(lambda done: self._clear_inflight(key, done))
            return future

    def _clear_inflight(self, key: CacheKey, done: Future[RefreshOutcome]) -> None:
        with self._inflight_lock:
            if self._inflight.get(key) is done:
                del self._inflight[key]

    def _do_refresh(self, key: CacheKey) -> RefreshOutcome:
        captured_at = self._clock()
        result: Result[list[PlayerRecord], UpstreamError]
        try:
            result = self._source.fetch_players(key.position, key.scoring_format)
        except Exception as e:
            logger.exception("Player source raised while fetching %s", key)
            result = Err(UpstreamError(f"{type(e).__name__}: {e}"))

        match result:
            case Ok(players) if players:
                entry = self._cache.set(
                    key.position, key.scoring_format, players, DataSource.API, captured_at=captured_at
                )
                with self._state_lock:
                    self._failures.pop(key, None)
                return RefreshOutcome(entry=entry)
            case Ok(_):
                error = UpstreamError("Upstream returned no players")
            case Err(error):
                pass

        logger.warning("Refresh of %s failed: %s", key, error.message)
        with self._state_lock:
            self._failures[key] = error
        return RefreshOutcome(entry=None, error=error)

    def _await(self, key: CacheKey, future: Future[RefreshOutcome]) -> RefreshOutcome:
        try:
            return future.result(timeout=self._settings.fetch_timeout)
        except TimeoutError:
            error = UpstreamError(f"Timed out after {self._settings.fetch_timeout:g}s")
        except CancelledError:
            error = UpstreamError("Refresh cancelled")
        logger.warning("Refresh of %s did not complete: %s", key, error.message)
        with self._state_lock:
            self._failures[key] = error
        return RefreshOutcome(entry=None, error=error)

    def _served(
        self,
        entry: CacheEntry,
        data_source: DataSource,
        status: CacheStatus,
        warning: DataWarning | None = None,
    ) -> DataResult:
        return DataResult(
            players=entry.data,
            data_source=data_source,
            cache_status=status,
            last_updated=_as_datetime(entry.timestamp),
            warning=warning,
        )

    def _sample_or_unavailable(self, key: CacheKey, status: CacheStatus, error: UpstreamError | None) -> DataResult:
        reason = error.message if error is not None else "unknown error"
        sample = self._source.sample_fallback(key.position)
        if not sample:
            raise UnavailableError(f"No cached, live, or sample data for {key} ({reason})")
        logger.warning("Using sample data for %s: %s", key, reason)
        return DataResult(
            players=tuple(sample),
            data_source=DataSource.SAMPLE,
            cache_status=status,
            last_updated=None,
            warning=DataWarning(WarningKind.SAMPLE_FALLBACK, f"Using sample data - live source unavailable ({reason})"),
        )
