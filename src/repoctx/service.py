"""Async facade over synchronization, cataloging and ranking.

All blocking work (processes, filesystem walks, deletes) runs on a
bounded thread pool via ``loop.run_in_executor`` so the calling event
loop is never blocked. Cancelling an awaiting task does not interrupt a
step already running on the pool; that step finishes under its project
lock, so a cancelled request never leaves a half-deleted mirror behind.
"""

import asyncio
import functools
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, TypeVar

from repoctx.catalog.file_catalog import FileCatalog
from repoctx.catalog.structure import StructureAnalyzer
from repoctx.config import RepoctxConfig
from repoctx.context.builder import ContextBuilder
from repoctx.models.catalog import AnalysisContext, CatalogEntry, ProjectStructure, ScoredFile
from repoctx.models.repository import SyncResult, VcsKind
from repoctx.ranking.ranker import RelevanceRanker
from repoctx.sync.synchronizer import RepositorySynchronizer
from repoctx.utils.deadline import Deadline

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RepositoryService:
    """Entry point for callers such as a chat backend.

    Usage:
        async with RepositoryService(config) as service:
            context = await service.prepare_context(url, "git", "My Project", query)
    """

    def __init__(
        self,
        config: RepoctxConfig | None = None,
        synchronizer: RepositorySynchronizer | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Configuration (defaults if None)
            synchronizer: Synchronizer to use (built from config if None)
            executor: Worker pool (a pool of workers.max_workers threads if None)
        """
        self.config = config or RepoctxConfig()
        self.synchronizer = synchronizer or RepositorySynchronizer(self.config)
        self.catalog = FileCatalog(self.config.catalog)
        self.ranker = RelevanceRanker(self.catalog, self.config.ranking)
        self.structure_analyzer = StructureAnalyzer(self.catalog, self.config.context)
        self.context_builder = ContextBuilder(self.catalog, self.config.context)

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.config.workers.max_workers,
            thread_name_prefix="repoctx",
        )

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args, **kwargs))

    # =========================================================================
    # Synchronization
    # =========================================================================

    async def synchronize(
        self,
        url: str,
        kind: VcsKind | str,
        project_name: str,
        timeout: float | None = None,
    ) -> SyncResult:
        """Clone, update or re-clone a mirror within an optional time budget."""
        return await self._run(
            self.synchronizer.synchronize, url, kind, project_name, Deadline.after(timeout)
        )

    async def synchronize_or_get(
        self,
        url: str,
        kind: VcsKind | str,
        project_name: str,
        timeout: float | None = None,
    ) -> Path:
        result = await self.synchronize(url, kind, project_name, timeout)
        return result.path

    async def force_resynchronize(
        self,
        url: str,
        kind: VcsKind | str,
        project_name: str,
        timeout: float | None = None,
    ) -> SyncResult:
        return await self._run(
            self.synchronizer.force_resynchronize, url, kind, project_name, Deadline.after(timeout)
        )

    async def cleanup(self, project_name: str) -> bool:
        return await self._run(self.synchronizer.cleanup, project_name)

    async def validate_repository(self, url: str, kind: VcsKind | str) -> bool:
        return await self._run(self.synchronizer.validate_repository, url, kind)

    # =========================================================================
    # Catalog and ranking
    # =========================================================================

    async def list_files(self, root: Path, extension_filter: list[str] | None = None) -> list[CatalogEntry]:
        return await self._run(self.catalog.list_files, root, extension_filter)

    async def read_file(self, path: Path) -> str | None:
        return await self._run(self.catalog.read_text, path)

    async def find_relevant(self, query: str, root: Path, timeout: float | None = None) -> list[ScoredFile]:
        return await self._run(self.ranker.find_relevant, query, root, deadline=Deadline.after(timeout))

    async def analyze_structure(self, root: Path) -> ProjectStructure:
        return await self._run(self.structure_analyzer.analyze, root)

    async def prepare_context(
        self,
        url: str,
        kind: VcsKind | str,
        project_name: str,
        query: str,
        timeout: float | None = None,
    ) -> AnalysisContext:
        """Synchronize a mirror and assemble the context for ``query``.

        A stale mirror is still used; the returned context is flagged.

        Raises:
            RepositoryValidationError: If inputs are malformed
            SynchronizationFailedError: If no usable tree exists
        """
        deadline = Deadline.after(timeout)
        result = await self._run(self.synchronizer.synchronize, url, kind, project_name, deadline)
        if result.is_stale:
            logger.warning("Preparing context from stale mirror %s: %s", result.path, result.detail)

        context = await self._run(self._assemble, query, result.path, deadline)
        context.stale = result.is_stale
        return context

    def _assemble(self, query: str, root: Path, deadline: Deadline) -> AnalysisContext:
        structure = self.structure_analyzer.analyze(root)
        relevant = self.ranker.find_relevant(query, root, deadline=deadline)
        return self.context_builder.build(query, root, relevant, structure)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Shut down the worker pool if this service created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    async def __aenter__(self) -> "RepositoryService":
        return self

    async def aclose(self) -> None:
        """Shut down an owned worker pool without blocking the event loop."""
        if self._owns_executor:
            await asyncio.to_thread(self._executor.shutdown, True)

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
