"""Repository entities: what to mirror and the state of the mirror on disk.

- VcsKind: Supported version-control systems
- RepositoryDescriptor: One remote source to mirror
- MirrorState / LocalMirror: On-disk clone state
- SyncAction / SyncResult: Outcome of a synchronization call
"""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from repoctx.errors import RepositoryValidationError

# Characters that are invalid in a path segment on at least one major platform
INVALID_NAME_CHARS = frozenset('<>:"/\\|?*')

ALLOWED_URL_SCHEMES = frozenset({"http", "https", "ssh", "git", "svn", "svn+ssh", "file"})

# user@host:path (scp-like syntax understood by git)
_SCP_LIKE_URL = re.compile(r"^[A-Za-z0-9._~-]+@[A-Za-z0-9.-]+:[^\s]+$")


class VcsKind(Enum):
    """Version-control system of a repository."""

    GIT = "git"
    SVN = "svn"

    @classmethod
    def parse(cls, value: "str | VcsKind") -> "VcsKind":
        """Parse a kind case-insensitively.

        Raises:
            RepositoryValidationError: If the kind is not supported
        """
        if isinstance(value, VcsKind):
            return value
        normalized = str(value).strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        valid = sorted(k.value for k in cls)
        raise RepositoryValidationError(
            f"Unsupported repository type: {value!r}. Valid: {valid}"
        )


def sanitize_project_name(project_name: str) -> str:
    """Turn a project name into a filesystem-safe path segment.

    Every invalid or control character is replaced with ``_``. The function
    is deterministic, so the same name always maps to the same segment.

    Raises:
        RepositoryValidationError: If the result is empty, ``.`` or ``..``
    """
    sanitized = "".join(
        "_" if char in INVALID_NAME_CHARS or ord(char) < 32 else char
        for char in project_name.strip()
    )
    if sanitized in {"", ".", ".."}:
        raise RepositoryValidationError(f"Invalid project name: {project_name!r}")
    return sanitized


def validate_repository_url(url: str) -> str:
    """Check that a URL is something a VCS client can be pointed at.

    Returns:
        The stripped URL

    Raises:
        RepositoryValidationError: If the URL is malformed
    """
    candidate = (url or "").strip()
    if not candidate:
        raise RepositoryValidationError("Repository URL is empty")
    if candidate.startswith("-"):
        raise RepositoryValidationError(f"Repository URL may not start with '-': {candidate}")
    if any(char.isspace() or ord(char) < 32 for char in candidate):
        raise RepositoryValidationError(f"Repository URL contains whitespace: {candidate!r}")

    if _SCP_LIKE_URL.match(candidate):
        return candidate

    parts = urlsplit(candidate)
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES:
        raise RepositoryValidationError(f"Unsupported repository URL: {candidate}")
    if not (parts.netloc or parts.path.strip("/")):
        raise RepositoryValidationError(f"Repository URL has no location: {candidate}")
    return candidate


@dataclass(frozen=True)
class RepositoryDescriptor:
    """One remote source to mirror.

    Attributes:
        url: Remote repository URL
        kind: Version-control kind
        project_name: Caller-facing project name (unsanitized)
    """

    url: str
    kind: VcsKind
    project_name: str

    @classmethod
    def create(cls, url: str, kind: "str | VcsKind", project_name: str) -> "RepositoryDescriptor":
        """Validate inputs and build a descriptor.

        Raises:
            RepositoryValidationError: If any input is malformed
        """
        vcs_kind = VcsKind.parse(kind)
        clean_url = validate_repository_url(url)
        sanitize_project_name(project_name)
        return cls(url=clean_url, kind=vcs_kind, project_name=project_name)

    @property
    def key(self) -> str:
        """Sanitized project name used for paths and locking."""
        return sanitize_project_name(self.project_name)


class MirrorState(Enum):
    """On-disk state of a mirror."""

    ABSENT = "absent"
    INVALID = "invalid"
    VALID_STALE = "valid-stale"
    VALID_FRESH = "valid-fresh"


@dataclass
class LocalMirror:
    """On-disk clone state.

    Attributes:
        root_path: Mirror directory (always below the base path)
        kind: Expected version-control kind
        state: Presence and validity of the checkout
    """

    root_path: Path
    kind: VcsKind
    state: MirrorState

    @property
    def exists(self) -> bool:
        return self.state is not MirrorState.ABSENT

    @property
    def is_valid(self) -> bool:
        return self.state in (MirrorState.VALID_STALE, MirrorState.VALID_FRESH)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "root_path": str(self.root_path),
            "kind": self.kind.value,
            "state": self.state.value,
        }


class SyncAction(Enum):
    """What a synchronization call did."""

    CLONED = "cloned"
    UPDATED = "updated"
    RECLONED = "recloned"
    STALE = "stale"


@dataclass
class SyncResult:
    """Outcome of a synchronization call.

    Attributes:
        path: Local mirror path handed to callers
        state: Mirror state after the call
        action: Action that produced the state
        detail: Failure summary when stale data is served
        timestamp: When the call finished (UTC)
    """

    path: Path
    state: MirrorState
    action: SyncAction
    detail: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_stale(self) -> bool:
        return self.action is SyncAction.STALE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": str(self.path),
            "state": self.state.value,
            "action": self.action.value,
            "detail": self.detail,
            "timestamp": self.timestamp.isoformat(),
        }
