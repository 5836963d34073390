"""Caller-facing services."""

from fantasy_football_tiers.services.player_data import PlayerDataService

__all__ = ["PlayerDataService"]
