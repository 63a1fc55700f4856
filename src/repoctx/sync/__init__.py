"""Mirror synchronization and per-project locking."""

from repoctx.sync.locks import KeyedLock
from repoctx.sync.synchronizer import RepositorySynchronizer, has_files

__all__ = ["RepositorySynchronizer", "KeyedLock", "has_files"]
