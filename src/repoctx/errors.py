"""Error taxonomy for repoctx.

Every failure that leaves the core is a RepoctxError with a stable,
machine-readable kind and a human-readable detail string. Raw process
output is kept on the exception attributes for logging but never placed
in the user-facing detail of a synchronization failure.
"""

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Stable machine-readable error kinds."""

    VALIDATION = "validation"
    PROCESS_TIMEOUT = "process_timeout"
    PROCESS_FAILURE = "process_failure"
    FILESYSTEM = "filesystem"
    NOT_FOUND = "not_found"
    REPOSITORY_UNAVAILABLE = "repository_unavailable"
    CONFIGURATION = "configuration"


class RepoctxError(Exception):
    """Base class for all repoctx errors.

    Attributes:
        kind: Stable error kind
        detail: Human-readable description
    """

    kind: ErrorKind = ErrorKind.CONFIGURATION

    def __init__(self, detail: str, kind: ErrorKind | None = None) -> None:
        if kind is not None:
            self.kind = kind
        self.detail = detail
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured output."""
        return {"kind": self.kind.value, "detail": self.detail}


class RepositoryValidationError(RepoctxError):
    """Raised for malformed URLs, unsupported kinds and unusable project names."""

    kind = ErrorKind.VALIDATION


class ToolNotAvailableError(RepoctxError):
    """Raised when an external executable cannot be started at all."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, tool_name: str, message: str | None = None) -> None:
        self.tool_name = tool_name
        super().__init__(message or f"Tool not available: {tool_name}")


class ProcessError(RepoctxError):
    """Common base for timed-out and failed external commands."""

    kind = ErrorKind.PROCESS_FAILURE

    def __init__(
        self,
        detail: str,
        command: list[str] | None = None,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = command or []
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(detail)


class ProcessTimeoutError(ProcessError):
    """Raised when a command was killed after exceeding its timeout."""

    kind = ErrorKind.PROCESS_TIMEOUT


class ProcessFailureError(ProcessError):
    """Raised when a command exited with a non-zero code."""

    kind = ErrorKind.PROCESS_FAILURE


class FilesystemError(RepoctxError):
    """Raised when permission or lock errors persist after retries."""

    kind = ErrorKind.FILESYSTEM


class MirrorNotFoundError(RepoctxError):
    """Raised when an operation needs a directory that does not exist."""

    kind = ErrorKind.NOT_FOUND


class SynchronizationFailedError(RepoctxError):
    """Raised when clone/update failed and no usable tree is available."""

    kind = ErrorKind.REPOSITORY_UNAVAILABLE

    def __init__(self, project_name: str, detail: str) -> None:
        self.project_name = project_name
        super().__init__(detail)
