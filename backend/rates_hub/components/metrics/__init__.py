"""Metrics collection."""

from rates_hub.components.metrics.collector import MetricsCollector

__all__ = ["MetricsCollector"]
