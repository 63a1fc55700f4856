"""Git adapter.

Commands:
- clone:    git clone <url> <target>
- update:   git pull origin
- validate: git ls-remote <url>
"""

from pathlib import Path

from repoctx.models.repository import VcsKind
from repoctx.vcs.base import VcsAdapter


class GitAdapter(VcsAdapter):
    """Adapter for the git command-line client."""

    kind = VcsKind.GIT
    executable = "git"
    marker = ".git"

    def environment(self) -> dict[str, str]:
        # Fail instead of waiting for credentials on a terminal that is not there
        return {"GIT_TERMINAL_PROMPT": "0"}

    def clone_command(self, url: str, target: Path) -> list[str]:
        return [self.executable, "clone", url, str(target)]

    def update_command(self) -> list[str]:
        return [self.executable, "pull", "origin"]

    def validate_command(self, url: str) -> list[str]:
        return [self.executable, "ls-remote", url]
