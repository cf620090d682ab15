"""Logging configuration for dockpanel.

Every panel log call carries its context in ``extra`` (``event`` from
LogEvent, plus ``container_id`` / ``operation`` where one applies). Both
output formats surface that context:
- text: message followed by ``[event=... container_id=...]``
- json: one object per line with the context as top-level keys
"""

import logging
import sys
import time
from collections.abc import Iterable

from pythonjsonlogger import json as jsonlogger

from dockpanel.config import LoggingConfig
from dockpanel.logging_schema import LogEvent

CONTEXT_FIELDS = ("event", "operation", "container_id", "error_type")

# Events the poller or a retrying client can repeat every few seconds
REPEATING_EVENTS = frozenset({LogEvent.REGISTRY_STALE, LogEvent.OPERATION_REJECTED})


class RateLimitFilter(logging.Filter):
    """Collapse repeats of noisy events.

    While the runtime is down the poller reports the same outage on every
    tick, and a UI polling a busy container triggers one rejection per
    request. Records whose ``event`` is in ``events`` pass at most once per
    window per (event, container, error type). Lifecycle events and records
    without an event are never dropped.
    """

    def __init__(
        self,
        rate_limit_seconds: float = 30.0,
        events: Iterable[str] = REPEATING_EVENTS,
        max_cache_size: int = 1000,
    ) -> None:
        super().__init__()
        self._rate_limit = rate_limit_seconds
        self._events = frozenset(events)
        self._max_cache = max_cache_size
        self._last_seen: dict[tuple[str, str, str], float] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        event = getattr(record, "event", None)
        if event not in self._events or record.levelno >= logging.ERROR:
            return True

        key = (
            str(event),
            str(getattr(record, "container_id", "")),
            str(getattr(record, "error_type", "")),
        )
        now = time.monotonic()
        last = self._last_seen.get(key)
        if last is not None and now - last < self._rate_limit:
            return False

        self._last_seen[key] = now
        if len(self._last_seen) > self._max_cache:
            newest = sorted(self._last_seen.items(), key=lambda item: item[1])
            self._last_seen = dict(newest[-(self._max_cache // 2) :])
        return True


class PanelTextFormatter(logging.Formatter):
    """Human-readable format with the structured context appended."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{field}={getattr(record, field)}"
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) not in (None, "")
        )
        if not context:
            return line
        # Keep tracebacks below the context
        head, sep, tail = line.partition("\n")
        return f"{head} [{context}]{sep}{tail}"


def json_formatter(config: LoggingConfig) -> jsonlogger.JsonFormatter:
    """JSON lines with timestamp, level, logger, service and all extras."""
    return jsonlogger.JsonFormatter(
        "%(levelname)s %(name)s %(message)s",
        rename_fields={"levelname": "level", "name": "logger"},
        static_fields={"service": config.service_name},
        timestamp=True,
    )


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging for the application.

    Args:
        config: Logging configuration settings.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    formatter: logging.Formatter
    if config.format == "json":
        formatter = json_formatter(config)
    else:
        formatter = PanelTextFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RateLimitFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # uvicorn installs its own handlers; route them through ours
    for name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = False
        uv_logger.addHandler(handler)

    # The panel UI polls every few seconds
    logging.getLogger("uvicorn.access").disabled = True

    # One line per Docker API request otherwise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
