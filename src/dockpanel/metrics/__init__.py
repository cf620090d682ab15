"""Prometheus metrics."""

from dockpanel.metrics.collector import (
    PANEL_BUSY_REJECTIONS,
    PANEL_CONTAINERS_TOTAL,
    PANEL_OPERATION_DURATION,
    PANEL_OPERATION_ERRORS,
    PANEL_REFRESH_TOTAL,
    PANEL_REGISTRY_STALE,
)

__all__ = [
    "PANEL_BUSY_REJECTIONS",
    "PANEL_CONTAINERS_TOTAL",
    "PANEL_OPERATION_DURATION",
    "PANEL_OPERATION_ERRORS",
    "PANEL_REFRESH_TOTAL",
    "PANEL_REGISTRY_STALE",
]
