"""repoctx data models.

This module exports all core entities used throughout the application:
- RepositoryDescriptor: Remote repository to mirror
- LocalMirror: On-disk state of a mirror
- SyncResult: Outcome of a synchronization call
- CatalogEntry: File eligible for analysis
- ScoredFile: Ranked candidate
- ProjectStructure: Structure summary of a mirror
- AnalysisContext: Assembled text context
"""

from repoctx.models.catalog import (
    AnalysisContext,
    CatalogEntry,
    ProjectStructure,
    ScoredFile,
)
from repoctx.models.repository import (
    LocalMirror,
    MirrorState,
    RepositoryDescriptor,
    SyncAction,
    SyncResult,
    VcsKind,
    sanitize_project_name,
)

__all__ = [
    "RepositoryDescriptor",
    "VcsKind",
    "LocalMirror",
    "MirrorState",
    "SyncAction",
    "SyncResult",
    "sanitize_project_name",
    "CatalogEntry",
    "ScoredFile",
    "ProjectStructure",
    "AnalysisContext",
]
