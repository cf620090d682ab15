"""Error handling module for dockpanel.

This module defines error codes, exception classes, and response models.

Error Response Format:
{
    "error": {
        "code": "CONTAINER_NOT_FOUND",
        "message": "Container not found"
    }
}

Usage:
    from dockpanel.core.errors import ContainerNotFoundError

    raise ContainerNotFoundError(f"Container {container_id} not found")
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes."""

    CONTAINER_NOT_FOUND = "CONTAINER_NOT_FOUND"
    CONTAINER_IN_USE = "CONTAINER_IN_USE"
    CONTAINER_BUSY = "CONTAINER_BUSY"
    INVALID_SPEC = "INVALID_SPEC"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    RUNTIME_UNAVAILABLE = "RUNTIME_UNAVAILABLE"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response format."""

    error: ErrorDetail


class PanelError(Exception):
    """Base exception for dockpanel.

    Every error is scoped to the single requested operation; the FastAPI
    exception handler turns it into a structured response.

    Attributes:
        code: The error code from ErrorCode enum.
        message: Human-readable error message.
        status_code: HTTP status code to return.
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(
            error=ErrorDetail(code=self.code.value, message=self.message)
        )


class ContainerNotFoundError(PanelError):
    """404 Not Found - Container not known to the runtime."""

    def __init__(self, message: str = "Container not found") -> None:
        super().__init__(ErrorCode.CONTAINER_NOT_FOUND, message, 404)


class ContainerInUseError(PanelError):
    """409 Conflict - Container is running and must be stopped first."""

    def __init__(self, message: str = "Container is running") -> None:
        super().__init__(ErrorCode.CONTAINER_IN_USE, message, 409)


class ContainerBusyError(PanelError):
    """409 Conflict - Another operation on this container is in flight."""

    def __init__(self, message: str = "Container is busy") -> None:
        super().__init__(ErrorCode.CONTAINER_BUSY, message, 409)


class InvalidSpecError(PanelError):
    """422 Unprocessable Entity - Run spec is malformed."""

    def __init__(self, message: str = "Invalid run spec") -> None:
        super().__init__(ErrorCode.INVALID_SPEC, message, 422)


class ContainerRuntimeError(PanelError):
    """502 Bad Gateway - Runtime call failed or timed out."""

    def __init__(self, message: str = "Container runtime operation failed") -> None:
        super().__init__(ErrorCode.RUNTIME_ERROR, message, 502)


class UnavailableError(PanelError):
    """503 Service Unavailable - Runtime cannot be reached for reads."""

    def __init__(self, message: str = "Container runtime unavailable") -> None:
        super().__init__(ErrorCode.RUNTIME_UNAVAILABLE, message, 503)
