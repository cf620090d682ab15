"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for dockpanel.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.CONTAINER_STARTED, ...})
    """

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

    # Container events
    CONTAINER_CREATED = "container_created"
    CONTAINER_STARTED = "container_started"
    CONTAINER_STOPPED = "container_stopped"
    CONTAINER_REMOVED = "container_removed"
    CONTAINER_UPDATED = "container_updated"
    CONTAINER_RECREATED = "container_recreated"

    # Lifecycle coordination
    OPERATION_REJECTED = "operation_rejected"
    OPERATION_TIMEOUT = "operation_timeout"
    OPERATION_FAILED = "operation_failed"

    # Registry events
    REGISTRY_REFRESHED = "registry_refreshed"
    REGISTRY_STALE = "registry_stale"
    POLLER_STARTED = "poller_started"
    POLLER_STOPPED = "poller_stopped"

    # Error events
    UNHANDLED_EXCEPTION = "unhandled_exception"
    PANEL_ERROR = "panel_error"
