from fantasy_football_tiers.sources.fantasypros import FantasyProsSource
from fantasy_football_tiers.sources.protocol import PlayerSource
from fantasy_football_tiers.sources.sample import SampleDataset

__all__ = ["FantasyProsSource", "PlayerSource", "SampleDataset"]
