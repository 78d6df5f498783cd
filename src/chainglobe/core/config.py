"""
Engine configuration.

Defaults live in chainglobe.core.constants. A YAML file (see
config/engine.yaml) can override any field, and a handful of environment
variables (optionally read from a .env file) override the YAML.

Usage:
    from chainglobe.core.config import load_config

    config = load_config(Path("config/engine.yaml"))
    print(config.ttls.registry_seconds)
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger

from chainglobe.core import constants


class ConfigError(Exception):
    """Configuration file could not be read or parsed."""
    pass


@dataclass
class ProviderEndpoints:
    """Base URLs for the six public providers."""
    defillama: str = constants.DEFILLAMA_BASE_URL
    defillama_icons: str = constants.DEFILLAMA_ICONS_URL
    coingecko: str = constants.COINGECKO_BASE_URL
    dexscreener: str = constants.DEXSCREENER_BASE_URL
    stablecoins: str = constants.STABLECOINS_BASE_URL
    yields: str = constants.YIELDS_BASE_URL
    fear_greed: str = constants.FEAR_GREED_BASE_URL


@dataclass
class CacheTTLs:
    """Per-provider bulk cache lifetimes and the snapshot staleness window."""
    registry_seconds: float = constants.REGISTRY_TTL_SECONDS
    stablecoins_seconds: float = constants.STABLECOIN_TTL_SECONDS
    yields_seconds: float = constants.YIELDS_TTL_SECONDS
    sentiment_seconds: float = constants.SENTIMENT_TTL_SECONDS
    snapshot_staleness_seconds: float = constants.SNAPSHOT_STALENESS_SECONDS


@dataclass
class EngineConfig:
    """Top-level engine configuration."""
    endpoints: ProviderEndpoints = field(default_factory=ProviderEndpoints)
    ttls: CacheTTLs = field(default_factory=CacheTTLs)
    request_timeout_seconds: float = constants.REQUEST_TIMEOUT_SECONDS
    user_agent: str = constants.USER_AGENT
    warmup_stagger_seconds: float = constants.WARMUP_STAGGER_SECONDS
    discovery_min_tvl: float = constants.DISCOVERY_MIN_TVL_USD
    discovery_limit: int = constants.DISCOVERY_LIMIT
    liquidity_search_limit: int = constants.LIQUIDITY_SEARCH_LIMIT
    top_yields_limit: int = constants.TOP_YIELDS_LIMIT
    yield_min_pool_tvl: float = constants.YIELD_MIN_POOL_TVL_USD
    yield_max_apy: float = constants.YIELD_MAX_REASONABLE_APY
    top_protocols_limit: int = constants.TOP_PROTOCOLS_LIMIT
    price_history_days: int = constants.PRICE_HISTORY_DAYS
    coingecko_calls_per_minute: int = constants.COINGECKO_CALLS_PER_MINUTE
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Build a config from a (possibly partial) mapping."""
        data = dict(data or {})
        endpoints = _build_section(ProviderEndpoints, data.pop("endpoints", None), "endpoints")
        ttls = _build_section(CacheTTLs, data.pop("ttls", None), "ttls")
        config = _build_section(cls, data, "engine")
        config.endpoints = endpoints
        config.ttls = ttls
        return config


def _build_section(section_cls, values: Optional[Dict[str, Any]], name: str):
    """Instantiate a dataclass section, ignoring unknown keys."""
    if values is None:
        return section_cls()
    if not isinstance(values, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping, got {type(values).__name__}")

    known = {f.name for f in fields(section_cls)} - {"endpoints", "ttls"}
    unknown = set(values) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys in '{name}': {sorted(unknown)}")

    return section_cls(**{k: v for k, v in values.items() if k in known})


def _apply_env_overrides(config: EngineConfig) -> EngineConfig:
    """Environment variables win over the YAML file."""
    level = os.getenv("CHAINGLOBE_LOG_LEVEL")
    if level:
        config.log_level = level.upper()

    log_json = os.getenv("CHAINGLOBE_LOG_JSON")
    if log_json:
        config.log_json = log_json.lower() == "true"

    timeout = os.getenv("CHAINGLOBE_REQUEST_TIMEOUT")
    if timeout:
        try:
            config.request_timeout_seconds = float(timeout)
        except ValueError:
            logger.warning(f"Invalid CHAINGLOBE_REQUEST_TIMEOUT={timeout!r}, keeping {config.request_timeout_seconds}")

    staleness = os.getenv("CHAINGLOBE_SNAPSHOT_STALENESS")
    if staleness:
        try:
            config.ttls.snapshot_staleness_seconds = float(staleness)
        except ValueError:
            logger.warning(f"Invalid CHAINGLOBE_SNAPSHOT_STALENESS={staleness!r}, keeping default")

    return config


def load_config(path: Optional[Path] = None) -> EngineConfig:
    """
    Load engine configuration.

    Args:
        path: Optional YAML file. Missing file means defaults.

    Returns:
        EngineConfig with YAML values and environment overrides applied

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    load_dotenv()

    data: Dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file {path} not found. Using default settings.")
        else:
            try:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Failed to load config {path}: {e}") from e

            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path} must contain a mapping")

            if not data:
                logger.warning(f"Config file {path} is empty. Using default settings.")

    config = EngineConfig.from_dict(data)
    return _apply_env_overrides(config)
