"""File catalog and project-structure summary."""

from repoctx.catalog.file_catalog import FileCatalog, normalize_extensions
from repoctx.catalog.structure import StructureAnalyzer

__all__ = ["FileCatalog", "StructureAnalyzer", "normalize_extensions"]
