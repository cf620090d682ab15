"""Registry poller - periodic refresh tied to the application lifespan."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from dockpanel.core.errors import UnavailableError
from dockpanel.logging_schema import LogEvent

if TYPE_CHECKING:
    from dockpanel.core.registry import ContainerRegistry

logger = logging.getLogger(__name__)


class RegistryPoller:
    """Refreshes the registry every ``interval`` seconds until stopped.

    A failed refresh leaves the registry stale and the loop keeps going; the
    next successful tick clears the stale flag.
    """

    def __init__(self, registry: ContainerRegistry, interval: float) -> None:
        self._registry = registry
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> None:
        try:
            await self._registry.refresh()
        except UnavailableError:
            # Registry already logged and marked itself stale
            pass

    async def run(self) -> None:
        """Main poll loop."""
        self._running = True
        logger.info(
            "Starting registry poller",
            extra={"event": LogEvent.POLLER_STARTED, "interval": self._interval},
        )
        try:
            while self._running:
                await self.tick()
                await asyncio.sleep(self._interval)
        finally:
            logger.info("Registry poller stopped", extra={"event": LogEvent.POLLER_STOPPED})

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        self._running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
