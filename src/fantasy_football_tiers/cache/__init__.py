from fantasy_football_tiers.cache.freshness import FreshnessCache, FreshnessPolicy, default_policies
from fantasy_football_tiers.cache.lru import LruStore

__all__ = ["FreshnessCache", "FreshnessPolicy", "LruStore", "default_policies"]
