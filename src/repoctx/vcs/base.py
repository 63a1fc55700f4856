"""Abstract base class for version-control adapters (Tool Agnosticism).

Each adapter knows one VCS client: the checkout marker that identifies a
valid working copy, and the argument lists for acquiring, refreshing and
validating a repository. Adapters never run processes themselves; the
synchronizer runs their commands through a CommandRunner so that every
invocation shares the same timeout and kill semantics.
"""

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from repoctx.errors import ToolNotAvailableError
from repoctx.models.repository import VcsKind
from repoctx.process.runner import CommandRunner


class VcsAdapter(ABC):
    """Interface for a version-control command-line client.

    Adding a new VCS MUST NOT require changes outside its adapter module
    and the registry.

    Attributes:
        kind: Version-control kind handled by this adapter
        executable: Client executable name
        marker: Directory that marks a valid working copy
    """

    kind: VcsKind
    executable: str
    marker: str

    def __init__(self, runner: CommandRunner | None = None) -> None:
        """Initialize the adapter.

        Args:
            runner: Runner used for version checks
        """
        self._runner = runner or CommandRunner()
        self._version: str | None = None

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def version(self) -> str | None:
        """Get the client version (cached after first check)."""
        if self._version is None:
            self._version = self.get_version()
        return self._version

    def has_marker(self, path: Path) -> bool:
        """Check whether ``path`` looks like a working copy of this kind."""
        return (Path(path) / self.marker).is_dir()

    def check_available(self) -> bool:
        """Verify the client executable is on PATH."""
        return shutil.which(self.executable) is not None

    def get_version(self) -> str | None:
        """Return the first line of the client's version output."""
        try:
            result = self._runner.execute(
                [self.executable, "--version"], Path.cwd(), timeout=10
            )
        except ToolNotAvailableError:
            return None
        if not result.success:
            return None
        output = result.stdout.strip() or result.stderr.strip()
        return output.split("\n")[0] if output else None

    def environment(self) -> dict[str, str]:
        """Extra environment variables for every command of this client."""
        return {}

    @abstractmethod
    def clone_command(self, url: str, target: Path) -> list[str]:
        """Command that creates a working copy of ``url`` at ``target``."""

    @abstractmethod
    def update_command(self) -> list[str]:
        """Command that refreshes the working copy it is run in."""

    @abstractmethod
    def validate_command(self, url: str) -> list[str]:
        """Command that succeeds only if ``url`` is a reachable repository."""

    def get_metadata(self) -> dict[str, Any]:
        """Get adapter metadata for logging and preflight output."""
        return {
            "kind": self.name,
            "executable": self.executable,
            "marker": self.marker,
            "available": self.check_available(),
        }
