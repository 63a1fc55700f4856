"""External process execution."""

from repoctx.process.runner import TIMEOUT_MARKER, CommandResult, CommandRunner

__all__ = ["CommandRunner", "CommandResult", "TIMEOUT_MARKER"]
