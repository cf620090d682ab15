"""Operation result types for lifecycle operations."""

from enum import Enum

from pydantic import BaseModel


class OperationStatus(str, Enum):
    """Operation status values."""

    COMPLETED = "completed"

    # Container already in the requested state (no runtime call made)
    ALREADY_RUNNING = "already_running"
    ALREADY_STOPPED = "already_stopped"


class OperationResult(BaseModel):
    """Unified result for start/stop/remove/update.

    Repeating start on a running container or stop on a stopped one
    returns an ALREADY_* status instead of an error.
    """

    status: OperationStatus
    container_id: str
    message: str = ""

    @property
    def is_success(self) -> bool:
        """Check if operation completed or was already in desired state."""
        return self.status in (
            OperationStatus.COMPLETED,
            OperationStatus.ALREADY_RUNNING,
            OperationStatus.ALREADY_STOPPED,
        )

    @property
    def is_noop(self) -> bool:
        return self.status != OperationStatus.COMPLETED
