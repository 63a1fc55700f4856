"""Catalog and ranking entities.

All of these are request-local and never persisted:
- CatalogEntry: A file eligible for analysis
- ScoredFile: A ranked candidate
- ProjectStructure: Counts and truncated per-extension file lists
- AnalysisContext: Assembled text handed to a completion backend
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class CatalogEntry:
    """A file eligible for analysis.

    Attributes:
        path: Absolute file path
        relative_path: POSIX-style path relative to the catalog root
        size_bytes: File size at enumeration time
    """

    path: Path
    relative_path: str
    size_bytes: int

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot ("" if none)."""
        return self.path.suffix.lower()


@dataclass(frozen=True)
class ScoredFile:
    """A ranked candidate (score is always positive when returned)."""

    path: Path
    relative_path: str
    score: int

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.relative_path, "score": self.score}


@dataclass
class ProjectStructure:
    """Summary of a mirror suitable for embedding in a text context.

    Attributes:
        project_path: Root that was analyzed
        total_files: Number of cataloged files
        extension_counts: Extension -> number of files (descending count)
        files_by_extension: Extension -> relative paths (truncated)
        config_files: Configuration file relative paths (truncated)
        analyzed_at: Analysis timestamp (UTC)
    """

    project_path: Path
    total_files: int = 0
    extension_counts: dict[str, int] = field(default_factory=dict)
    files_by_extension: dict[str, list[str]] = field(default_factory=dict)
    config_files: list[str] = field(default_factory=list)
    analyzed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "project_path": str(self.project_path),
            "total_files": self.total_files,
            "extension_counts": dict(self.extension_counts),
            "files_by_extension": {k: list(v) for k, v in self.files_by_extension.items()},
            "config_files": list(self.config_files),
            "analyzed_at": self.analyzed_at.isoformat(),
        }


@dataclass
class AnalysisContext:
    """Text context assembled for a query.

    Attributes:
        query: The user's query
        text: Rendered context
        files_included: Relative paths whose content was embedded
        relevant_files: Full ranked list the context was built from
        stale: True if the mirror could not be refreshed for this request
    """

    query: str
    text: str
    files_included: list[str] = field(default_factory=list)
    relevant_files: list[ScoredFile] = field(default_factory=list)
    stale: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "text": self.text,
            "files_included": list(self.files_included),
            "relevant_files": [f.to_dict() for f in self.relevant_files],
            "stale": self.stale,
        }
