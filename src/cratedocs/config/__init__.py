"""Configuration models and loaders."""

from .config import (
    CacheConfig,
    Config,
    FetcherConfig,
    MonitoringConfig,
    ResolverConfig,
    ServiceConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "CacheConfig",
    "Config",
    "FetcherConfig",
    "MonitoringConfig",
    "ResolverConfig",
    "ServiceConfig",
    "find_config_file",
    "load_config",
]
