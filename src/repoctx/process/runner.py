"""External command execution with timeouts and forced termination.

CommandRunner runs one process at a time per call, captures its output
and never lets it outlive its timeout. Ordinary failures (non-zero exit,
timeout) are reported through CommandResult; only a process that cannot
be started at all raises, since that is a configuration problem.
"""

import logging
import os
import signal
import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from repoctx.errors import (
    MirrorNotFoundError,
    ProcessError,
    ProcessFailureError,
    ProcessTimeoutError,
    ToolNotAvailableError,
)
from repoctx.utils.logging import get_logger

logger = get_logger(__name__)

TIMEOUT_MARKER = "Process timed out"

# Seconds to wait for a killed process to release its pipes
KILL_GRACE_PERIOD = 5.0

_STDERR_TAIL_CHARS = 500


@dataclass
class CommandResult:
    """Outcome of one external process invocation.

    Attributes:
        command: Argument list that was executed
        working_dir: Directory the process ran in
        timeout: Timeout in seconds
        exit_code: Exit code (None if the process was killed on timeout)
        stdout: Captured standard output
        stderr: Captured standard error
        timed_out: Whether the process was killed on timeout
        duration: Wall-clock seconds until completion or kill
    """

    command: list[str]
    working_dir: Path
    timeout: float
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    duration: float = 0.0
    error_text: str = field(init=False, default="")

    def __post_init__(self) -> None:
        if self.timed_out:
            self.error_text = f"{TIMEOUT_MARKER} after {self.timeout:g}s"
        elif self.exit_code not in (0, None):
            self.error_text = self.stderr.strip()[-_STDERR_TAIL_CHARS:] or (
                f"exited with code {self.exit_code}"
            )

    @property
    def success(self) -> bool:
        """True only for a process that finished within its timeout with code 0."""
        return not self.timed_out and self.exit_code == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.command)

    def to_error(self) -> ProcessError:
        """Build the exception matching this (failed) result."""
        if self.timed_out:
            return ProcessTimeoutError(
                f"'{self.command_line}' {self.error_text}",
                command=self.command,
                stderr=self.stderr,
            )
        return ProcessFailureError(
            f"'{self.command_line}' failed with exit code {self.exit_code}: {self.error_text}",
            command=self.command,
            exit_code=self.exit_code,
            stderr=self.stderr,
        )

    def raise_for_status(self) -> None:
        """Raise ProcessTimeoutError/ProcessFailureError unless successful."""
        if not self.success:
            raise self.to_error()


class CommandRunner:
    """Runs external commands with captured output and a hard timeout.

    The process is started in its own session on POSIX so a timeout can
    kill the whole process group (VCS clients spawn helpers such as ssh
    or git-remote-https that would otherwise keep the pipes open).

    Usage:
        runner = CommandRunner()
        result = runner.execute(["git", "pull", "origin"], repo_path, timeout=300)
        if not result.success:
            ...
    """

    def __init__(self, kill_grace_period: float = KILL_GRACE_PERIOD) -> None:
        """Initialize the runner.

        Args:
            kill_grace_period: Seconds to wait for output after a forced kill
        """
        self.kill_grace_period = kill_grace_period

    def execute(
        self,
        command: Sequence[str],
        working_dir: Path,
        timeout: float,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run one command and wait for completion or timeout.

        Args:
            command: Executable and arguments (never passed through a shell)
            working_dir: Directory to run in
            timeout: Seconds before the process is forcibly terminated
            env: Extra environment variables layered over os.environ

        Returns:
            CommandResult describing the outcome

        Raises:
            MirrorNotFoundError: If working_dir does not exist
            ToolNotAvailableError: If the process could not be started
        """
        argv = [str(part) for part in command]
        cwd = Path(working_dir)
        process_env = {**os.environ, **env} if env else None

        if not cwd.is_dir():
            raise MirrorNotFoundError(f"Working directory does not exist: {cwd}")

        logger.debug("Running: %s (cwd=%s, timeout=%ss)", " ".join(argv), cwd, timeout)
        started = time.monotonic()

        try:
            process = subprocess.Popen(
                argv,
                cwd=str(cwd),
                env=process_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=os.name == "posix",
            )
        except OSError as e:
            name = argv[0] if argv else "<empty command>"
            logger.error("Failed to start %s: %s", name, e)
            raise ToolNotAvailableError(name, f"Could not start '{name}': {e}") from e

        timed_out = False
        try:
            stdout, stderr = process.communicate(timeout=max(timeout, 0.0))
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.warning("Command timed out after %ss, killing: %s", timeout, " ".join(argv))
            self._kill(process)
            stdout, stderr = self._drain(process)

        result = CommandResult(
            command=argv,
            working_dir=cwd,
            timeout=timeout,
            exit_code=None if timed_out else process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            timed_out=timed_out,
            duration=time.monotonic() - started,
        )

        logger.structured(
            logging.INFO if result.success else logging.WARNING,
            f"Command executed: {result.command_line}",
            success=result.success,
            exit_code=result.exit_code,
            duration=round(result.duration, 3),
        )
        if result.stderr and not result.success:
            logger.debug("stderr of %s:\n%s", result.command_line, result.stderr)
        return result

    def _kill(self, process: subprocess.Popen[str]) -> None:
        """Forcibly terminate the process (and its group on POSIX)."""
        if os.name == "posix":
            try:
                os.killpg(process.pid, signal.SIGKILL)
                return
            except (ProcessLookupError, PermissionError):
                pass
        try:
            process.kill()
        except OSError:
            # Already exited between the timeout and the kill
            pass

    def _drain(self, process: subprocess.Popen[str]) -> tuple[str, str]:
        """Collect whatever output is left after a kill, without hanging."""
        try:
            return process.communicate(timeout=self.kill_grace_period)
        except subprocess.TimeoutExpired:
            logger.warning("Process %d did not release its pipes after kill", process.pid)
            for pipe in (process.stdout, process.stderr):
                if pipe is not None:
                    pipe.close()
            try:
                process.wait(timeout=self.kill_grace_period)
            except subprocess.TimeoutExpired:
                logger.error("Process %d is still running after SIGKILL", process.pid)
            return "", ""
