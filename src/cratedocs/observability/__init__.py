"""Logging and metrics for cratedocs."""

from __future__ import annotations

from typing import Any, Dict, Optional

from prometheus_client import generate_latest

from .logging import configure_logging
from .metrics import METRICS, MetricsManager

__all__ = ["configure_logging", "MetricsManager", "METRICS", "increment", "histogram", "export_prometheus"]


def _series(name: str, labels: Optional[Dict[str, Any]]) -> Any:
    """The collector registered as ``name`` (or its labelled child); None for unknown names."""
    metric = METRICS.get(name)
    if metric is None or labels is None:
        return metric
    return metric.labels(**labels)


def increment(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    series = _series(name, labels)
    if series is not None:
        series.inc(value)


def histogram(name: str, value: float, labels: Optional[Dict[str, Any]] = None) -> None:
    series = _series(name, labels)
    if series is not None:
        series.observe(value)


def export_prometheus() -> str:
    """Current metrics in the Prometheus text exposition format."""
    return generate_latest().decode("utf-8")
