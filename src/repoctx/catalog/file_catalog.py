"""File enumeration for local mirrors.

FileCatalog walks a tree lazily and applies its exclusion rules while
walking: denylisted directories are never descended into, so the cost of
enumerating a mirror does not grow with the size of its node_modules.
"""

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from repoctx.config import CatalogConfig
from repoctx.errors import MirrorNotFoundError
from repoctx.models.catalog import CatalogEntry

logger = logging.getLogger(__name__)


def normalize_extensions(extension_filter: str | Iterable[str] | None) -> frozenset[str] | None:
    """Normalize "cs", ".CS" or ["cs", "js"] to {".cs", ".js"}."""
    if extension_filter is None:
        return None
    if isinstance(extension_filter, str):
        extension_filter = [extension_filter]
    normalized = {
        ext if ext.startswith(".") else f".{ext}"
        for ext in (e.strip().lower() for e in extension_filter)
        if ext and ext != "."
    }
    return frozenset(normalized) or None


class FileCatalog:
    """Enumerates files eligible for analysis.

    Exclusion rules:
    - any directory segment in ``exclude_dirs`` (matched case-insensitively)
    - any extension in ``exclude_extensions``
    - files larger than ``max_file_size`` bytes

    Enumeration order is deterministic: names are sorted within each
    directory and a directory's files come before its subdirectories.
    Symlinked directories are not followed.

    Usage:
        catalog = FileCatalog(config.catalog)
        for entry in catalog.enumerate(repo_path, "py"):
            ...
    """

    def __init__(self, config: CatalogConfig | None = None) -> None:
        """Initialize the catalog.

        Args:
            config: Catalog filters (defaults if None)
        """
        self.config = config or CatalogConfig()
        self._exclude_dirs = frozenset(self.config.exclude_dirs)
        self._exclude_extensions = frozenset(self.config.exclude_extensions)

    def enumerate(
        self,
        root: Path,
        extension_filter: str | Iterable[str] | None = None,
    ) -> Iterator[CatalogEntry]:
        """Lazily yield catalog entries under ``root``.

        Each call starts a fresh walk, so the result can be re-enumerated.

        Args:
            root: Directory to enumerate
            extension_filter: Extension(s) to restrict results to

        Raises:
            MirrorNotFoundError: If root is not an existing directory
        """
        root = Path(root)
        if not root.is_dir():
            raise MirrorNotFoundError(f"Project path does not exist: {root}")
        return self._walk(root.resolve(), normalize_extensions(extension_filter))

    def list_files(
        self,
        root: Path,
        extension_filter: str | Iterable[str] | None = None,
    ) -> list[CatalogEntry]:
        """Enumerate eagerly and log the total."""
        entries = list(self.enumerate(root, extension_filter))
        logger.info("Found %d files in project %s", len(entries), root)
        return entries

    def is_excluded_dir(self, name: str) -> bool:
        return name.lower() in self._exclude_dirs

    def is_excluded_file(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self._exclude_extensions

    def read_text(self, path: Path) -> str | None:
        """Read a file's text best-effort.

        Undecodable bytes are replaced rather than failing the read.

        Returns:
            File content, or None if the file is missing or unreadable
        """
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            logger.warning("File does not exist: %s", path)
        except OSError as e:
            logger.warning("Failed to read file %s: %s", path, e)
        return None

    def _walk(self, root: Path, extensions: frozenset[str] | None) -> Iterator[CatalogEntry]:
        # Explicit stack of (absolute dir, relative prefix)
        stack: list[tuple[str, str]] = [(str(root), "")]
        max_size = self.config.max_file_size

        while stack:
            directory, prefix = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.warning("Cannot list directory %s: %s", directory, e)
                continue

            subdirs: list[tuple[str, str]] = []
            for entry in entries:
                relative = f"{prefix}{entry.name}"
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if not self.is_excluded_dir(entry.name):
                            subdirs.append((entry.path, f"{relative}/"))
                        continue
                    if not entry.is_file(follow_symlinks=False):
                        continue
                    if self.is_excluded_file(entry.name):
                        continue
                    if extensions is not None and os.path.splitext(entry.name)[1].lower() not in extensions:
                        continue
                    size = entry.stat(follow_symlinks=False).st_size
                except OSError as e:
                    logger.debug("Skipping %s: %s", entry.path, e)
                    continue

                if size > max_size:
                    logger.debug("Skipping %s: %d bytes exceeds limit", relative, size)
                    continue

                yield CatalogEntry(path=Path(entry.path), relative_path=relative, size_bytes=size)

            # Reversed so the first subdirectory is popped (visited) first
            stack.extend(reversed(subdirs))
