from fantasy_football_tiers.tiers.classifier import COMMON_TIER_CONFIGS, TierClassifier, compute_tiers

__all__ = ["COMMON_TIER_CONFIGS", "TierClassifier", "compute_tiers"]
