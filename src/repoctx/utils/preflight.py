"""Preflight validation.

External dependencies are validated before synchronization begins, not
during processing: a missing required VCS client or an unwritable base
directory is reported up front with a clear message.
"""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from repoctx.models.repository import VcsKind
from repoctx.vcs.registry import VcsRegistry, get_registry

INSTALL_HINTS = {
    VcsKind.GIT: "Install from: https://git-scm.com",
    VcsKind.SVN: "Install from: https://subversion.apache.org",
}


@dataclass
class ToolCheck:
    """Result of checking a single tool.

    Attributes:
        name: Tool name
        available: Whether tool is available
        version: Tool version if available
        required: Whether tool is required for this run
        path: Path to executable (or directory) if available
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether all required checks passed
        checks: Individual check results
        errors: Error messages for failed required checks
        warnings: Warning messages for failed optional checks
    """

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"Required tool not found: {check.name}")
            else:
                self.warnings.append(f"Optional tool not found: {check.name}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


class PreflightChecker:
    """Validates VCS clients and storage before synchronization.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all(config.storage.resolved_base_path)
        if not result.success:
            sys.exit(1)
    """

    def __init__(self, registry: VcsRegistry | None = None) -> None:
        self.registry = registry or get_registry()

    def check_vcs(self, kind: VcsKind | str, required: bool = True) -> ToolCheck:
        """Check that the client for ``kind`` is installed.

        Args:
            kind: Version-control kind
            required: Whether the client is required

        Returns:
            ToolCheck result
        """
        adapter = self.registry.get_adapter(kind)
        path = shutil.which(adapter.executable)

        if path is None:
            return ToolCheck(
                name=adapter.executable,
                available=False,
                required=required,
                message=INSTALL_HINTS.get(adapter.kind, ""),
            )

        return ToolCheck(
            name=adapter.executable,
            available=True,
            version=adapter.get_version(),
            required=required,
            path=path,
            message="Version control",
        )

    def check_git(self, required: bool = True) -> ToolCheck:
        return self.check_vcs(VcsKind.GIT, required)

    def check_base_path(self, base_path: Path) -> ToolCheck:
        """Check that the mirror base directory exists (or can be created) and is writable."""
        try:
            base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return ToolCheck(
                name="storage",
                available=False,
                required=True,
                path=str(base_path),
                message=f"Cannot create base directory: {e.strerror or e}",
            )

        if not os.access(base_path, os.W_OK | os.X_OK):
            return ToolCheck(
                name="storage",
                available=False,
                required=True,
                path=str(base_path),
                message="Base directory is not writable",
            )

        return ToolCheck(
            name="storage",
            available=True,
            required=True,
            path=str(base_path),
            message="Mirror base directory",
        )

    def check_all(
        self,
        base_path: Path | None = None,
        required_kinds: list[str] | None = None,
    ) -> PreflightResult:
        """Run all preflight checks.

        Args:
            base_path: Mirror base directory to check (skipped if None)
            required_kinds: Kinds whose clients are required (default: git);
                the other registered kinds are checked as optional

        Returns:
            PreflightResult with all check results
        """
        required = {VcsKind.parse(k) for k in (required_kinds or [VcsKind.GIT.value])}
        result = PreflightResult()

        for kind in self.registry.list_kinds():
            vcs_kind = VcsKind.parse(kind)
            result.add_check(self.check_vcs(vcs_kind, required=vcs_kind in required))

        if base_path is not None:
            check = self.check_base_path(base_path)
            result.checks.append(check)
            if not check.available:
                result.success = False
                result.errors.append(f"{check.message}: {base_path}")

        return result
