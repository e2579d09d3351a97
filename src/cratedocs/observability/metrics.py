"""
Defines Prometheus metrics for the cache, fetch and resolution layers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram
from prometheus_client import start_http_server

if TYPE_CHECKING:
    from cratedocs.config.config import MonitoringConfig

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Re-importing this module (tests reload it) must reuse the collectors that
# are already registered instead of raising a duplicate registration error.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "cache_hits_total": Counter(
            "cratedocs_cache_hits_total",
            "Cache reads that returned a usable value",
            ["freshness"],
        ),
        "cache_misses_total": Counter(
            "cratedocs_cache_misses_total",
            "Cache reads that found nothing usable",
        ),
        "cache_evictions_total": Counter(
            "cratedocs_cache_evictions_total",
            "Entries evicted to make room for a new key",
        ),
        "fetch_responses_total": Counter(
            "cratedocs_fetch_responses_total",
            "HTTP responses by status class",
            ["status_class"],
        ),
        "fetch_latency_seconds": Histogram(
            "cratedocs_fetch_latency_seconds",
            "Time taken by a single HTTP request",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0],
        ),
        "fetch_retries_total": Counter(
            "cratedocs_fetch_retries_total",
            "Retries issued after a transient failure",
        ),
        "background_refresh_total": Counter(
            "cratedocs_background_refresh_total",
            "Stale-entry background refreshes by outcome",
            ["outcome"],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


class MetricsManager:
    """Manages the lifecycle of the Prometheus exporter."""

    def __init__(self, config: MonitoringConfig) -> None:
        self.config = config
        self._started = False

    def start(self) -> None:
        """Starts the Prometheus server if a port is configured."""
        if self.config.prometheus_port and not self._started:
            logger.info("Starting Prometheus metrics server", port=self.config.prometheus_port)
            start_http_server(self.config.prometheus_port)
            self._started = True

    def get_current_metrics(self) -> Dict[str, Optional[float]]:
        """Get current sample values keyed by sample name."""
        values: Dict[str, Optional[float]] = {}
        for metric in METRICS.values():
            for family in metric.collect():
                for sample in family.samples:
                    label_suffix = ",".join(f"{k}={v}" for k, v in sorted(sample.labels.items()))
                    key = f"{sample.name}{{{label_suffix}}}" if label_suffix else sample.name
                    values[key] = sample.value
        return values
