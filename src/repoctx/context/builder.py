"""Context assembly for completion backends.

The assembled text contains the query, the structure summary as JSON and
the (truncated) content of the top relevant files.
"""

import json
import logging
from pathlib import Path

from repoctx.catalog.file_catalog import FileCatalog
from repoctx.config import ContextConfig
from repoctx.errors import MirrorNotFoundError
from repoctx.models.catalog import AnalysisContext, ProjectStructure, ScoredFile
from repoctx.templates.renderer import ContextRenderer

logger = logging.getLogger(__name__)

TRUNCATION_SUFFIX = "..."


def truncate_content(content: str, limit: int) -> str:
    """Cut content to ``limit`` characters, marking the cut."""
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_SUFFIX


class ContextBuilder:
    """Builds the AnalysisContext for a query over one mirror."""

    def __init__(
        self,
        catalog: FileCatalog,
        config: ContextConfig | None = None,
        renderer: ContextRenderer | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or ContextConfig()
        self.renderer = renderer or ContextRenderer()

    def build(
        self,
        query: str,
        root: Path,
        relevant: list[ScoredFile],
        structure: ProjectStructure,
    ) -> AnalysisContext:
        """Render the context text.

        Args:
            query: The user's query
            root: Mirror root the files belong to
            relevant: Ranked files, best first
            structure: Structure summary of the mirror

        Returns:
            AnalysisContext with the rendered text and embedded file list

        Raises:
            MirrorNotFoundError: If root does not exist
        """
        if not Path(root).is_dir():
            raise MirrorNotFoundError(f"Directory not found: {root}")

        files: list[dict[str, str]] = []
        for scored in relevant[: self.config.max_files]:
            content = self.catalog.read_text(scored.path)
            if content is None:
                continue
            files.append({
                "path": scored.relative_path,
                "content": truncate_content(content, self.config.max_file_chars).rstrip("\n"),
            })

        text = self.renderer.render(
            query=query,
            analyzed_at=structure.analyzed_at,
            structure_json=json.dumps(structure.to_dict(), indent=2),
            files=files,
        )

        logger.info("Built context with %d files for query: %s", len(files), query)
        return AnalysisContext(
            query=query,
            text=text,
            files_included=[f["path"] for f in files],
            relevant_files=list(relevant),
        )
