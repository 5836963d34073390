from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml

from fantasy_football_tiers.cache.freshness import FreshnessPolicy
from fantasy_football_tiers.domain.cache import DataClass
from fantasy_football_tiers.orchestration.orchestrator import OrchestratorSettings
from fantasy_football_tiers.sources.fantasypros import DEFAULT_BASE_URL

if TYPE_CHECKING:
    from collections.abc import Mapping


class AppConfig(Protocol):
    def __getitem__(self, key: str) -> object: ...


class ConfigError(Exception):
    """Raised when a configuration value cannot be converted or is out of range."""


_DEFAULTS: dict[str, object] = {
    "source": {
        "base_url": DEFAULT_BASE_URL,
        "api_key": "",
        "season": 0,
        "timeout": 10.0,
    },
    "cache": {
        "position": {
            "fresh_window": 300,
            "hard_expiry": 86400,
            "max_entries": 48,
            "refresh_interval": 300,
        },
        "aggregate": {
            "fresh_window": 600,
            "hard_expiry": 86400,
            "max_entries": 16,
            "refresh_interval": 600,
        },
    },
    "orchestrator": {
        "fetch_timeout": 15.0,
        "max_workers": 4,
    },
    "tiers": {
        "max_entries": 100,
        "ttl": 1800,
    },
}


def create_config(
    yaml_path: str = "ffdata.yaml",
    env_prefix: str = "FFTIERS",
    defaults: dict[str, object] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): explicit overrides > env vars > YAML file > defaults dict.

    Args:
        yaml_path: Path to the YAML config file.
        env_prefix: Prefix for environment variables (``FFTIERS__SOURCE__API_KEY``).
        defaults: Default configuration values.
        overrides: Nested dict applied above every other layer.
    """
    if defaults is None:
        defaults = _DEFAULTS

    layers = [
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    ]
    if overrides:
        layers.insert(0, config_from_dict(dict(overrides)))

    return ConfigurationSet(*layers)


def _number(cfg: AppConfig, key: str) -> float:
    raw = cfg[key]
    try:
        return float(str(raw))
    except ValueError:
        raise ConfigError(f"Config '{key}' must be numeric, got {raw!r}") from None


def _integer(cfg: AppConfig, key: str) -> int:
    raw = cfg[key]
    try:
        return int(str(raw))
    except ValueError:
        raise ConfigError(f"Config '{key}' must be an integer, got {raw!r}") from None


def load_policies(cfg: AppConfig | None = None) -> dict[DataClass, FreshnessPolicy]:
    if cfg is None:
        cfg = create_config()
    policies: dict[DataClass, FreshnessPolicy] = {}
    for data_class in DataClass:
        prefix = f"cache.{data_class.value}"
        try:
            policies[data_class] = FreshnessPolicy(
                fresh_window=_number(cfg, f"{prefix}.fresh_window"),
                hard_expiry=_number(cfg, f"{prefix}.hard_expiry"),
                max_entries=_integer(cfg, f"{prefix}.max_entries"),
                refresh_interval=_number(cfg, f"{prefix}.refresh_interval"),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid '{prefix}' policy: {e}") from e
    return policies


def load_orchestrator_settings(cfg: AppConfig | None = None) -> OrchestratorSettings:
    if cfg is None:
        cfg = create_config()
    settings = OrchestratorSettings(
        fetch_timeout=_number(cfg, "orchestrator.fetch_timeout"),
        max_workers=_integer(cfg, "orchestrator.max_workers"),
    )
    if settings.fetch_timeout <= 0 or settings.max_workers <= 0:
        raise ConfigError(f"Orchestrator settings must be positive, got {settings}")
    return settings


@dataclass(frozen=True)
class SourceSettings:
    api_key: str
    base_url: str
    season: int | None
    timeout: float


@dataclass(frozen=True)
class TierSettings:
    max_entries: int
    ttl_seconds: float


def load_source_settings(cfg: AppConfig | None = None) -> SourceSettings:
    if cfg is None:
        cfg = create_config()
    season = _integer(cfg, "source.season")
    timeout = _number(cfg, "source.timeout")
    if season < 0:
        raise ConfigError(f"Config 'source.season' must be >= 0 (0 means current year), got {season}")
    if timeout <= 0:
        raise ConfigError(f"Config 'source.timeout' must be positive, got {timeout}")
    return SourceSettings(
        api_key=str(cfg["source.api_key"]),
        base_url=str(cfg["source.base_url"]),
        season=season or None,
        timeout=timeout,
    )


def load_tier_settings(cfg: AppConfig | None = None) -> TierSettings:
    if cfg is None:
        cfg = create_config()
    settings = TierSettings(
        max_entries=_integer(cfg, "tiers.max_entries"),
        ttl_seconds=_number(cfg, "tiers.ttl"),
    )
    if settings.max_entries <= 0 or settings.ttl_seconds <= 0:
        raise ConfigError(f"Tier cache settings must be positive, got {settings}")
    return settings
