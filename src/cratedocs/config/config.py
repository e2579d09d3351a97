"""
Configuration management for cratedocs using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class CacheConfig(BaseModel):
    """Response cache sizing and freshness windows."""

    max_entries: int = Field(default=500, gt=0, description="Maximum number of cached responses.")
    fresh_ttl_seconds: float = Field(default=5 * 60, gt=0, description="Fresh window after a write.")
    stale_grace_seconds: float = Field(
        default=15 * 60,
        gt=0,
        description="Time after a write during which a stale value is still served.",
    )

    @model_validator(mode="after")
    def check_grace_covers_ttl(self) -> CacheConfig:
        if self.stale_grace_seconds < self.fresh_ttl_seconds:
            raise ValueError("stale_grace_seconds must be >= fresh_ttl_seconds")
        return self


class FetcherConfig(BaseModel):
    """HTTP fetch deadlines and retry budget."""

    user_agent: str = Field(default="cratedocs/0.1.0", description="User-Agent string for HTTP requests.")
    text_timeout: float = Field(default=15.0, gt=0, description="Deadline for HTML page requests in seconds.")
    json_timeout: float = Field(default=10.0, gt=0, description="Deadline for JSON API requests in seconds.")
    max_retries: int = Field(default=2, ge=0, description="Additional attempts after a transient failure.")
    base_delay_seconds: float = Field(default=0.5, ge=0, description="Linear backoff step between retries.")


class ResolverConfig(BaseModel):
    """Ranking constants for item search."""

    exact_name_score: int = 100
    exact_path_score: int = 95
    prefix_name_score: int = 60
    prefix_path_score: int = 55
    substring_score: int = 20
    fuzzy_distance_ratio: float = Field(default=0.4, gt=0, le=1)
    fuzzy_limit: int = Field(default=20, gt=0, description="Maximum fuzzy matches merged into results.")
    max_results: int = Field(default=100, gt=0, description="Maximum matches returned by a search.")
    max_suggestions: int = Field(default=10, gt=0, description="Candidates offered when resolution fails.")

    @model_validator(mode="after")
    def check_tier_order(self) -> ResolverConfig:
        tiers = [
            self.exact_name_score,
            self.exact_path_score,
            self.prefix_name_score,
            self.prefix_path_score,
            self.substring_score,
        ]
        if tiers != sorted(tiers, reverse=True) or tiers[-1] <= 0:
            raise ValueError("score tiers must be positive and in descending priority order")
        return self


class ServiceConfig(BaseModel):
    """Remote endpoints and request shaping."""

    docs_base: str = Field(default="https://docs.rs", description="Base URL of the documentation host.")
    std_docs_base: str = Field(
        default="https://doc.rust-lang.org/stable",
        description="Base URL for standard library documentation.",
    )
    registry_base: str = Field(default="https://crates.io/api/v1", description="Registry JSON API base URL.")
    releases_base: str = Field(default="https://api.github.com", description="Release-notes API base URL.")
    max_batch_size: int = Field(default=20, gt=0, description="Maximum lookups in a single batch.")

    @field_validator("docs_base", "std_docs_base", "registry_base", "releases_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to stderr.")
    prometheus_port: int | None = Field(default=None, description="Port for Prometheus metrics exporter.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "cratedocs"
    version: str = "0.1.0"
    cache: CacheConfig = Field(default_factory=CacheConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="CRATEDOCS_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for name in ("cratedocs.yaml", "cratedocs.yml"):
        path = current_dir / name
        if path.exists():
            return path
    return None


def load_config(path: Path | None = None) -> Config:
    """
    Load configuration from ``path``, or from a ``cratedocs.yaml`` found in the
    working directory. Without a file, defaults plus ``CRATEDOCS_*`` environment
    overrides apply. An invalid file raises instead of silently falling back.
    """
    path = path or find_config_file()
    if path is None or not path.exists():
        log.info("No config file found. Using default settings.")
        return Config()
    log.info("Loading configuration from: %s", path)
    return Config.from_yaml(path)
