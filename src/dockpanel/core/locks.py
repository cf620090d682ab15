"""Per-container locks for lifecycle operations."""

import asyncio


class ContainerLocks:
    """Get-or-create registry of per-container locks.

    All mutating operations on one container share its lock. Callers check
    ``locked()`` and fail fast instead of queueing behind the holder, so a
    lock nobody holds has no waiters and is dropped on release. The table
    only ever contains ids with an operation in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, container_id: str) -> asyncio.Lock:
        if container_id not in self._locks:
            self._locks[container_id] = asyncio.Lock()
        return self._locks[container_id]

    def is_busy(self, container_id: str) -> bool:
        lock = self._locks.get(container_id)
        return lock is not None and lock.locked()

    def discard(self, container_id: str) -> None:
        """Forget a container's lock if nobody holds it."""
        lock = self._locks.get(container_id)
        if lock is not None and not lock.locked():
            del self._locks[container_id]
