"""Subversion adapter.

Commands (all non-interactive so a missing credential fails fast):
- clone:    svn checkout <url> <target>
- update:   svn update
- validate: svn info <url>
"""

from pathlib import Path

from repoctx.models.repository import VcsKind
from repoctx.vcs.base import VcsAdapter


class SvnAdapter(VcsAdapter):
    """Adapter for the svn command-line client."""

    kind = VcsKind.SVN
    executable = "svn"
    marker = ".svn"

    def clone_command(self, url: str, target: Path) -> list[str]:
        return [self.executable, "checkout", "--non-interactive", url, str(target)]

    def update_command(self) -> list[str]:
        return [self.executable, "update", "--non-interactive"]

    def validate_command(self, url: str) -> list[str]:
        return [self.executable, "info", "--non-interactive", url]
