"""Prometheus metrics definitions for dockpanel.

Tracks runtime calls made on behalf of lifecycle operations, per-container
lock contention, and registry refresh health.
"""

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Histogram Buckets
# =============================================================================
# Runtime mutations range from tens of milliseconds (stop) to a minute (run with pull)
_BUCKETS_SLOW = (
    0.05, 0.1, 0.2, 0.4, 0.8,
    1.5, 3, 6, 12, 24,
    48, 96,
)

# =============================================================================
# Lifecycle Operation Metrics
# =============================================================================

PANEL_OPERATION_DURATION = Histogram(
    "dockpanel_operation_duration_seconds",
    "Duration of lifecycle operations",
    ["operation"],  # start, stop, remove, run, update
    buckets=_BUCKETS_SLOW,
)

PANEL_OPERATION_ERRORS = Counter(
    "dockpanel_operation_errors_total",
    "Total lifecycle operation errors",
    ["operation", "error_type"],  # error_type: runtime_error, timeout, not_found, in_use, invalid_spec
)

PANEL_BUSY_REJECTIONS = Counter(
    "dockpanel_busy_rejections_total",
    "Operations rejected because the container had an operation in flight",
    ["operation"],
)

# =============================================================================
# Registry Metrics
# =============================================================================

PANEL_REFRESH_TOTAL = Counter(
    "dockpanel_registry_refresh_total",
    "Registry refresh attempts",
    ["result"],  # success, unavailable
)

PANEL_CONTAINERS_TOTAL = Gauge(
    "dockpanel_containers_total",
    "Containers in the current registry snapshot",
    ["state"],  # running, stopped
)

PANEL_REGISTRY_STALE = Gauge(
    "dockpanel_registry_stale",
    "1 if the registry is serving last-known state after a failed refresh",
)

_OPERATIONS = ("start", "stop", "remove", "run", "update")
_ERROR_TYPES = ("runtime_error", "timeout", "not_found", "in_use", "invalid_spec")


def _init_metrics() -> None:
    """Initialize labeled metrics with zero values."""
    for op in _OPERATIONS:
        PANEL_OPERATION_DURATION.labels(operation=op)
        PANEL_BUSY_REJECTIONS.labels(operation=op)
        for error_type in _ERROR_TYPES:
            PANEL_OPERATION_ERRORS.labels(operation=op, error_type=error_type)

    for result in ("success", "unavailable"):
        PANEL_REFRESH_TOTAL.labels(result=result)

    PANEL_CONTAINERS_TOTAL.labels(state="running")
    PANEL_CONTAINERS_TOTAL.labels(state="stopped")


_init_metrics()
