"""Lifecycle coordinator - serializes start/stop/remove/run/update per container.

Rules:
1. At most one mutating operation per container id. A second call while
   one is in flight fails immediately with ContainerBusyError.
2. Operations on different ids never wait for each other.
3. Every runtime mutation is bounded by operation_timeout; a timeout
   becomes ContainerRuntimeError.
4. The mutation runs in its own task. A caller that goes away does not
   cancel it, and the lock is released by that task when it finishes.
5. State is always read back from the runtime before deciding; the
   coordinator never asserts a status on its own.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from dockpanel.core.errors import (
    ContainerBusyError,
    ContainerInUseError,
    ContainerNotFoundError,
    ContainerRuntimeError,
    InvalidSpecError,
    PanelError,
    UnavailableError,
)
from dockpanel.core.locks import ContainerLocks
from dockpanel.core.models import Container, RunSpec
from dockpanel.core.result import OperationResult, OperationStatus
from dockpanel.logging_schema import LogEvent
from dockpanel.metrics import (
    PANEL_BUSY_REJECTIONS,
    PANEL_OPERATION_DURATION,
    PANEL_OPERATION_ERRORS,
)

if TYPE_CHECKING:
    from dockpanel.config import LifecycleConfig
    from dockpanel.core.interfaces import ContainerRuntime
    from dockpanel.core.registry import ContainerRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ERROR_TYPES = {
    ContainerNotFoundError: "not_found",
    ContainerInUseError: "in_use",
    InvalidSpecError: "invalid_spec",
}


class LifecycleCoordinator:
    """Executes lifecycle commands against the runtime."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        registry: ContainerRegistry,
        config: LifecycleConfig,
        locks: ContainerLocks | None = None,
    ) -> None:
        self._runtime = runtime
        self._registry = registry
        self._timeout_s = config.operation_timeout
        self._clone_suffix = config.clone_suffix
        self._locks = locks or ContainerLocks()
        self._inflight: set[asyncio.Task] = set()

    def is_busy(self, container_id: str) -> bool:
        return self._locks.is_busy(container_id)

    # =========================================================================
    # Commands
    # =========================================================================

    async def start(self, container_id: str) -> OperationResult:
        async def op() -> OperationResult:
            container = await self._require(container_id)
            if container.running:
                logger.info(
                    "Container already running",
                    extra={
                        "event": LogEvent.CONTAINER_STARTED,
                        "container_id": container_id,
                        "status": "already_running",
                    },
                )
                return OperationResult(
                    status=OperationStatus.ALREADY_RUNNING,
                    container_id=container_id,
                    message="Container already running",
                )

            await self._runtime.start(container_id)
            logger.info(
                "Started container",
                extra={"event": LogEvent.CONTAINER_STARTED, "container_id": container_id},
            )
            return OperationResult(status=OperationStatus.COMPLETED, container_id=container_id)

        return await self._exclusive("start", container_id, op)

    async def stop(self, container_id: str) -> OperationResult:
        async def op() -> OperationResult:
            container = await self._require(container_id)
            if not container.running:
                logger.info(
                    "Container already stopped",
                    extra={
                        "event": LogEvent.CONTAINER_STOPPED,
                        "container_id": container_id,
                        "status": "already_stopped",
                    },
                )
                return OperationResult(
                    status=OperationStatus.ALREADY_STOPPED,
                    container_id=container_id,
                    message="Container is not running",
                )

            await self._runtime.stop(container_id)
            logger.info(
                "Stopped container",
                extra={"event": LogEvent.CONTAINER_STOPPED, "container_id": container_id},
            )
            return OperationResult(status=OperationStatus.COMPLETED, container_id=container_id)

        return await self._exclusive("stop", container_id, op)

    async def remove(self, container_id: str) -> OperationResult:
        """Remove a stopped container. Running containers are never force-killed."""

        async def op() -> OperationResult:
            container = await self._require(container_id)
            if container.running:
                raise ContainerInUseError(
                    f"Container {container_id} is running; stop it before removing"
                )

            await self._runtime.remove(container_id)
            logger.info(
                "Removed container",
                extra={"event": LogEvent.CONTAINER_REMOVED, "container_id": container_id},
            )
            return OperationResult(status=OperationStatus.COMPLETED, container_id=container_id)

        return await self._exclusive("remove", container_id, op)

    async def run(self, spec: RunSpec) -> str:
        """Create and start a new container, returning its identifier."""
        if not spec.image.strip():
            PANEL_OPERATION_ERRORS.labels(operation="run", error_type="invalid_spec").inc()
            raise InvalidSpecError("Image is required")

        container_id = uuid.uuid4().hex

        async def op() -> str:
            await self._runtime.create(container_id, spec)
            logger.info(
                "Created container",
                extra={
                    "event": LogEvent.CONTAINER_CREATED,
                    "container_id": container_id,
                    "image": spec.image,
                    "container_name": spec.name,
                },
            )
            await self._runtime.start(container_id)
            logger.info(
                "Started container",
                extra={"event": LogEvent.CONTAINER_STARTED, "container_id": container_id},
            )
            return container_id

        return await self._exclusive("run", container_id, op)

    async def update(self, container_id: str, spec: RunSpec) -> OperationResult:
        """Store new configuration; it takes effect on the next start.

        Empty image or name keep the container's current values.
        """

        async def op() -> OperationResult:
            container = await self._require(container_id)
            merged = spec.model_copy(
                update={
                    "image": spec.image.strip() or container.image,
                    "name": spec.name or container.name,
                }
            )
            await self._runtime.update(container_id, merged)
            logger.info(
                "Updated container configuration",
                extra={
                    "event": LogEvent.CONTAINER_UPDATED,
                    "container_id": container_id,
                    "running": container.running,
                },
            )
            message = "Restart the container to apply changes" if container.running else ""
            return OperationResult(
                status=OperationStatus.COMPLETED,
                container_id=container_id,
                message=message,
            )

        return await self._exclusive("update", container_id, op)

    async def clone(self, container_id: str) -> RunSpec:
        """Derive a RunSpec for a copy of an existing container.

        Only the first port mapping is carried over; the edit form holds a
        single mapping.
        """
        try:
            source = self._registry.find_container(container_id)
        except ContainerNotFoundError:
            try:
                source = await asyncio.wait_for(
                    self._require(container_id), timeout=self._timeout_s
                )
            except asyncio.TimeoutError as exc:
                raise ContainerRuntimeError("clone lookup timed out") from exc

        name = source.name or source.short_id
        return RunSpec(
            image=source.image,
            name=f"{name}{self._clone_suffix}",
            args=list(source.args),
            ports=list(source.ports[:1]),
        )

    # =========================================================================
    # Internals
    # =========================================================================

    async def _require(self, container_id: str) -> Container:
        container = await self._runtime.inspect(container_id)
        if container is None:
            raise ContainerNotFoundError(f"Container {container_id} not found")
        return container

    async def _exclusive(
        self,
        operation: str,
        container_id: str,
        op: Callable[[], Awaitable[T]],
    ) -> T:
        lock = self._locks.get(container_id)
        if lock.locked():
            PANEL_BUSY_REJECTIONS.labels(operation=operation).inc()
            logger.info(
                "Operation rejected, container busy",
                extra={
                    "event": LogEvent.OPERATION_REJECTED,
                    "operation": operation,
                    "container_id": container_id,
                },
            )
            raise ContainerBusyError(f"Container {container_id} has an operation in progress")

        # Uncontended acquire completes without suspending
        await lock.acquire()
        task = asyncio.create_task(self._guarded(operation, container_id, lock, op))
        self._inflight.add(task)
        task.add_done_callback(self._on_done)

        result = await asyncio.shield(task)
        await self._refresh_registry()
        return result

    async def _guarded(
        self,
        operation: str,
        container_id: str,
        lock: asyncio.Lock,
        op: Callable[[], Awaitable[T]],
    ) -> T:
        start = time.monotonic()
        try:
            return await asyncio.wait_for(op(), timeout=self._timeout_s)
        except asyncio.TimeoutError as exc:
            PANEL_OPERATION_ERRORS.labels(operation=operation, error_type="timeout").inc()
            logger.warning(
                "Operation timeout",
                extra={
                    "event": LogEvent.OPERATION_TIMEOUT,
                    "operation": operation,
                    "container_id": container_id,
                    "timeout_s": self._timeout_s,
                },
            )
            raise ContainerRuntimeError(
                f"{operation} timed out after {self._timeout_s:g}s"
            ) from exc
        except PanelError as exc:
            error_type = _ERROR_TYPES.get(type(exc), "runtime_error")
            PANEL_OPERATION_ERRORS.labels(operation=operation, error_type=error_type).inc()
            raise
        except Exception as exc:
            PANEL_OPERATION_ERRORS.labels(operation=operation, error_type="runtime_error").inc()
            logger.exception(
                "Operation failed",
                extra={
                    "event": LogEvent.OPERATION_FAILED,
                    "operation": operation,
                    "container_id": container_id,
                    "error_type": type(exc).__name__,
                },
            )
            raise ContainerRuntimeError(f"{operation} failed: {exc}") from exc
        finally:
            lock.release()
            self._locks.discard(container_id)
            PANEL_OPERATION_DURATION.labels(operation=operation).observe(time.monotonic() - start)

    def _on_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        # Mark the outcome as retrieved when the caller went away before it finished
        if not task.cancelled():
            task.exception()

    async def _refresh_registry(self) -> None:
        try:
            await self._registry.refresh()
        except UnavailableError:
            # Poller retries; the command itself already succeeded
            pass

    async def wait_idle(self) -> None:
        """Wait for in-flight mutations (used on shutdown)."""
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
