"""Caller-facing facade over the orchestrator, cache and tier classifier."""

from __future__ import annotations

import logging
import time
from functools import cached_property
from typing import TYPE_CHECKING

from fantasy_football_tiers.domain.cache import CacheKey

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from config import ConfigurationSet

    from fantasy_football_tiers.cache.freshness import FreshnessCache
    from fantasy_football_tiers.domain.cache import CacheStats, StatusDisplay
    from fantasy_football_tiers.domain.player import PlayerRecord, Position, ScoringFormat
    from fantasy_football_tiers.domain.tier import TierGroup
    from fantasy_football_tiers.orchestration.orchestrator import AcquisitionOrchestrator, DataResult
    from fantasy_football_tiers.sources.protocol import PlayerSource
    from fantasy_football_tiers.tiers.classifier import TierClassifier

logger = logging.getLogger(__name__)


class PlayerDataService:
    """Lazily-initialized owner of one cache, one source and one classifier.

    Supports explicit injection for testing via constructor parameters.
    When dependencies are not provided, they are created on first access
    from the layered app config.
    """

    def __init__(
        self,
        app_config: ConfigurationSet | None = None,
        *,
        cache: FreshnessCache | None = None,
        source: PlayerSource | None = None,
        classifier: TierClassifier | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._app_config = app_config
        self._cache = cache
        self._source = source
        self._classifier = classifier
        self._clock = clock

    @cached_property
    def app_config(self) -> ConfigurationSet:
        if self._app_config is not None:
            return self._app_config
        from fantasy_football_tiers.config import create_config

        return create_config()

    @cached_property
    def cache(self) -> FreshnessCache:
        if self._cache is not None:
            return self._cache
        from fantasy_football_tiers.cache.freshness import FreshnessCache
        from fantasy_football_tiers.config import load_policies

        return FreshnessCache(load_policies(self.app_config), clock=self._clock)

    @cached_property
    def source(self) -> PlayerSource:
        if self._source is not None:
            return self._source
        from fantasy_football_tiers.config import load_source_settings
        from fantasy_football_tiers.sources.fantasypros import FantasyProsSource

        settings = load_source_settings(self.app_config)
        return FantasyProsSource(
            settings.api_key,
            base_url=settings.base_url,
            season=settings.season,
            timeout=settings.timeout,
        )

    @cached_property
    def classifier(self) -> TierClassifier:
        if self._classifier is not None:
            return self._classifier
        from fantasy_football_tiers.config import load_tier_settings
        from fantasy_football_tiers.tiers.classifier import TierClassifier

        settings = load_tier_settings(self.app_config)
        return TierClassifier(
            max_entries=settings.max_entries,
            ttl_seconds=settings.ttl_seconds,
            clock=self._clock,
        )

    @cached_property
    def orchestrator(self) -> AcquisitionOrchestrator:
        from fantasy_football_tiers.config import load_orchestrator_settings
        from fantasy_football_tiers.orchestration.orchestrator import AcquisitionOrchestrator

        return AcquisitionOrchestrator(
            self.cache, self.source, load_orchestrator_settings(self.app_config), clock=self._clock
        )

    def query(self, position: str | Position, scoring_format: str | ScoringFormat) -> DataResult:
        return self.orchestrator.query(position, scoring_format)

    def refresh(self, position: str | Position, scoring_format: str | ScoringFormat) -> tuple[PlayerRecord, ...]:
        return self.orchestrator.refresh(position, scoring_format)

    def invalidate(self, position: str | Position, scoring_format: str | ScoringFormat) -> None:
        self.orchestrator.invalidate(position, scoring_format)
        logger.info("Invalidated %s", CacheKey.of(position, scoring_format))

    def classify(
        self,
        players: Sequence[PlayerRecord],
        tier_count: int,
        scoring_format: str | ScoringFormat | None = None,
    ) -> list[TierGroup]:
        return self.classifier.classify(players, tier_count, scoring_format)

    def tiers(
        self, position: str | Position, scoring_format: str | ScoringFormat, tier_count: int
    ) -> tuple[DataResult, list[TierGroup]]:
        """Query the best available players for a key and classify them."""
        result = self.query(position, scoring_format)
        return result, self.classify(result.players, tier_count, scoring_format)

    def status_display(self, position: str | Position, scoring_format: str | ScoringFormat) -> StatusDisplay:
        return self.cache.get_status_display(position, scoring_format)

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def tier_stats(self) -> CacheStats:
        return self.classifier.stats()

    def start(self) -> None:
        self.orchestrator.start_auto_refresh()

    def stop(self) -> None:
        if "orchestrator" in self.__dict__:
            self.orchestrator.stop_auto_refresh()

    def close(self) -> None:
        if "orchestrator" in self.__dict__:
            self.orchestrator.close()
        # Only a source built here is owned here; injected sources are closed by their owner.
        if self._source is None and "source" in self.__dict__:
            self.__dict__["source"].close()

    def __enter__(self) -> PlayerDataService:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
