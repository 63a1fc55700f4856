"""Project-structure summary of a mirror.

The summary is what a completion backend sees of the repository layout:
how many files there are, which extensions dominate, a truncated list of
files for each extension and the configuration files.
"""

import logging
from collections import Counter
from datetime import UTC, datetime
from pathlib import Path

from repoctx.catalog.file_catalog import FileCatalog
from repoctx.config import ContextConfig
from repoctx.models.catalog import ProjectStructure

logger = logging.getLogger(__name__)

CONFIG_FILE_EXTENSIONS = frozenset({".json", ".config", ".yaml", ".yml", ".toml", ".ini", ".xml"})

NO_EXTENSION = "(none)"


class StructureAnalyzer:
    """Builds a ProjectStructure with a single catalog pass."""

    def __init__(self, catalog: FileCatalog, config: ContextConfig | None = None) -> None:
        self.catalog = catalog
        self.config = config or ContextConfig()

    def analyze(self, root: Path) -> ProjectStructure:
        """Summarize the files under ``root``.

        Raises:
            MirrorNotFoundError: If root does not exist
        """
        counts: Counter[str] = Counter()
        files: dict[str, list[str]] = {}
        config_files: list[str] = []
        list_limit = self.config.structure_list_limit

        for entry in self.catalog.enumerate(root):
            extension = entry.extension or NO_EXTENSION
            counts[extension] += 1
            bucket = files.setdefault(extension, [])
            if len(bucket) < list_limit:
                bucket.append(entry.relative_path)
            if (
                entry.extension in CONFIG_FILE_EXTENSIONS
                and len(config_files) < self.config.config_file_limit
            ):
                config_files.append(entry.relative_path)

        # Most common extensions first, ties alphabetical
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))

        structure = ProjectStructure(
            project_path=Path(root),
            total_files=sum(counts.values()),
            extension_counts=dict(ordered),
            files_by_extension={ext: files[ext] for ext, _ in ordered},
            config_files=config_files,
            analyzed_at=datetime.now(UTC),
        )
        logger.info(
            "Analyzed project structure for %s (%d files, %d extensions)",
            root,
            structure.total_files,
            len(ordered),
        )
        return structure
