"""Repository synchronization: clone, update, or re-clone a local mirror.

Decision table for synchronize():

| On disk                  | Action                        | On failure                          |
|--------------------------|-------------------------------|-------------------------------------|
| nothing                  | clone                         | SynchronizationFailedError          |
| working copy (marker)    | update in place               | serve existing tree (stale)         |
| directory without marker | wipe, then clone              | stale if files survived, else raise |

Every sequence for a project runs under that project's lock, so
concurrent callers for the same project are serialized while different
projects proceed independently.
"""

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

from repoctx.config import RepoctxConfig
from repoctx.errors import FilesystemError, RepositoryValidationError, SynchronizationFailedError
from repoctx.filesystem.reclaimer import DirectoryReclaimer
from repoctx.models.repository import (
    LocalMirror,
    MirrorState,
    RepositoryDescriptor,
    SyncAction,
    SyncResult,
    VcsKind,
    sanitize_project_name,
    validate_repository_url,
)
from repoctx.process.runner import CommandResult, CommandRunner
from repoctx.sync.locks import KeyedLock
from repoctx.utils.deadline import Deadline
from repoctx.utils.retry import RetryPolicy
from repoctx.vcs.base import VcsAdapter
from repoctx.vcs.registry import VcsRegistry, get_registry

logger = logging.getLogger(__name__)


def _describe_failure(result: CommandResult) -> str:
    """Short failure summary without raw process output."""
    if result.timed_out:
        return f"timed out after {result.timeout:g}s"
    return f"exited with code {result.exit_code}"


def has_files(path: Path) -> bool:
    """Check whether any regular file exists below ``path``."""
    if not path.is_dir():
        return False
    for _, _, files in os.walk(path):
        if files:
            return True
    return False


class RepositorySynchronizer:
    """Keeps local mirrors of remote repositories under one base directory.

    Usage:
        synchronizer = RepositorySynchronizer(config)
        path = synchronizer.synchronize_or_get(url, "git", "My Project")
    """

    def __init__(
        self,
        config: RepoctxConfig | None = None,
        runner: CommandRunner | None = None,
        reclaimer: DirectoryReclaimer | None = None,
        registry: VcsRegistry | None = None,
        locks: KeyedLock | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the synchronizer and create the base directory.

        Args:
            config: Configuration (defaults if None)
            runner: Command runner for VCS commands
            reclaimer: Directory deletion strategy
            registry: VCS adapter registry
            locks: Per-project locks (share one instance across synchronizers
                that use the same base path)
            sleep: Sleep function used between retries

        Raises:
            FilesystemError: If the base directory cannot be created
        """
        self.config = config or RepoctxConfig()
        self.base_path = self.config.storage.resolved_base_path
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create base directory {self.base_path}: {e}") from e

        self._runner = runner or CommandRunner()
        self._reclaimer = reclaimer or DirectoryReclaimer()
        self._registry = registry or get_registry()
        self._locks = locks or KeyedLock()
        self._sleep = sleep

        retry = self.config.retry
        self.cleanup_policy = RetryPolicy(
            max_attempts=retry.cleanup_attempts,
            delay=retry.cleanup_delay,
            backoff=retry.cleanup_backoff,
            sleep=sleep,
        )
        self.update_policy = RetryPolicy(
            max_attempts=retry.update_attempts,
            delay=retry.update_delay,
            sleep=sleep,
        )

    # =========================================================================
    # Paths and inspection
    # =========================================================================

    def resolve_path(self, project_name: str) -> Path:
        """Local mirror path for a project (always a child of the base path).

        Raises:
            RepositoryValidationError: If the name cannot be made safe
        """
        path = Path(os.path.normpath(self.base_path / sanitize_project_name(project_name)))
        if path.parent != self.base_path:
            raise RepositoryValidationError(
                f"Project name {project_name!r} resolves outside {self.base_path}"
            )
        return path

    def inspect(self, project_name: str, kind: "VcsKind | str") -> LocalMirror:
        """Report the on-disk state of a project's mirror."""
        adapter = self._registry.get_adapter(kind, self._runner)
        path = self.resolve_path(project_name)
        return LocalMirror(root_path=path, kind=adapter.kind, state=self._state_of(path, adapter))

    def _state_of(self, path: Path, adapter: VcsAdapter) -> MirrorState:
        if not os.path.lexists(path):
            return MirrorState.ABSENT
        if path.is_dir() and adapter.has_marker(path):
            return MirrorState.VALID_STALE
        return MirrorState.INVALID

    # =========================================================================
    # Public operations
    # =========================================================================

    def synchronize_or_get(
        self,
        url: str,
        kind: "VcsKind | str",
        project_name: str,
        deadline: Deadline | None = None,
    ) -> Path:
        """Clone, update or re-clone, and return the local mirror path.

        Raises:
            RepositoryValidationError: If inputs are malformed
            SynchronizationFailedError: If no usable tree could be produced
            ToolNotAvailableError: If the VCS client cannot be started
        """
        return self.synchronize(url, kind, project_name, deadline).path

    def synchronize(
        self,
        url: str,
        kind: "VcsKind | str",
        project_name: str,
        deadline: Deadline | None = None,
    ) -> SyncResult:
        """Same as synchronize_or_get, returning the full SyncResult."""
        descriptor = RepositoryDescriptor.create(url, kind, project_name)
        adapter = self._registry.get_adapter(descriptor.kind, self._runner)
        path = self.resolve_path(project_name)
        deadline = deadline or Deadline.none()

        with self._locks.hold(descriptor.key):
            state = self._state_of(path, adapter)
            try:
                if state is MirrorState.ABSENT:
                    logger.info("Cloning new repository to %s", path)
                    self._clone(descriptor, adapter, path, deadline)
                    action = SyncAction.CLONED
                elif state is MirrorState.VALID_STALE:
                    logger.info("Updating existing repository at %s", path)
                    if not self._update(adapter, path, deadline):
                        return self._stale_result(path, adapter, "Update failed, serving existing files")
                    action = SyncAction.UPDATED
                else:
                    logger.info(
                        "Directory %s exists but is not a valid %s repository, re-cloning",
                        path,
                        adapter.name,
                    )
                    self._clone(descriptor, adapter, path, deadline)
                    action = SyncAction.RECLONED
            except SynchronizationFailedError as e:
                if has_files(path):
                    logger.warning(
                        "Using existing files in %s despite synchronization failure: %s",
                        path,
                        e.detail,
                    )
                    return self._stale_result(path, adapter, e.detail)
                raise

        logger.info("Repository %s %s at %s", descriptor.project_name, action.value, path)
        return SyncResult(path=path, state=MirrorState.VALID_FRESH, action=action)

    def force_resynchronize(
        self,
        url: str,
        kind: "VcsKind | str",
        project_name: str,
        deadline: Deadline | None = None,
    ) -> SyncResult:
        """Discard any local state and clone fresh.

        Raises:
            SynchronizationFailedError: If the clone fails (no stale fallback)
        """
        descriptor = RepositoryDescriptor.create(url, kind, project_name)
        adapter = self._registry.get_adapter(descriptor.kind, self._runner)
        path = self.resolve_path(project_name)

        with self._locks.hold(descriptor.key):
            if not self._reclaim(path):
                logger.warning("Could not fully clean %s before re-clone", path)
            self._clone(descriptor, adapter, path, deadline or Deadline.none())

        logger.info("Repository %s re-cloned at %s", descriptor.project_name, path)
        return SyncResult(path=path, state=MirrorState.VALID_FRESH, action=SyncAction.RECLONED)

    def cleanup(self, project_name: str) -> bool:
        """Delete a project's mirror.

        Returns:
            True if the directory is confirmed absent (also when it never existed)
        """
        path = self.resolve_path(project_name)
        with self._locks.hold(path.name):
            return self._reclaim(path)

    def validate_repository(self, url: str, kind: "VcsKind | str") -> bool:
        """Check that ``url`` is a reachable repository of ``kind``.

        Raises:
            RepositoryValidationError: If the URL or kind is malformed
            ToolNotAvailableError: If the VCS client cannot be started
        """
        clean_url = validate_repository_url(url)
        adapter = self._registry.get_adapter(kind, self._runner)
        result = self._runner.execute(
            adapter.validate_command(clean_url),
            self.base_path,
            timeout=self.config.commands.validate_timeout,
            env=adapter.environment(),
        )
        if not result.success:
            logger.warning("Repository validation failed for %s: %s", clean_url, _describe_failure(result))
        return result.success

    # =========================================================================
    # Steps
    # =========================================================================

    def _reclaim(self, path: Path) -> bool:
        """Delete-and-verify under the cleanup retry policy."""
        if not os.path.lexists(path):
            return True

        logger.info("Cleaning up repository directory: %s", path)

        def attempt() -> bool:
            return self._reclaimer.delete(path) and not os.path.lexists(path)

        removed = self.cleanup_policy.run(attempt, f"cleanup of {path.name}")
        if removed:
            logger.info("Successfully cleaned up repository directory: %s", path)
        else:
            logger.error("Directory could not be fully removed: %s", path)
        return removed

    def _update(self, adapter: VcsAdapter, path: Path, deadline: Deadline) -> bool:
        """Run the update command; False means the existing tree is served."""
        if deadline.expired:
            logger.warning("Deadline expired before update of %s, serving existing files", path)
            return False

        last: CommandResult | None = None

        def attempt() -> bool:
            nonlocal last
            last = self._runner.execute(
                adapter.update_command(),
                path,
                timeout=deadline.clamp(self.config.commands.timeout),
                env=adapter.environment(),
            )
            # Timed-out updates are not retried
            return last.success or last.timed_out or deadline.expired

        self.update_policy.run(attempt, f"update of {path.name}")
        assert last is not None
        if last.success:
            return True

        logger.warning("Update command failed for %s: %s", path, _describe_failure(last))
        logger.info("Continuing with existing repository files at %s", path)
        return False

    def _clone(
        self,
        descriptor: RepositoryDescriptor,
        adapter: VcsAdapter,
        path: Path,
        deadline: Deadline,
    ) -> None:
        """Clone into ``path``, retrying once after wiping a partial checkout.

        Raises:
            SynchronizationFailedError: If no complete checkout was produced
        """
        name = descriptor.project_name
        if deadline.expired:
            raise SynchronizationFailedError(name, f"Deadline expired before clone of {descriptor.url}")

        if os.path.lexists(path):
            logger.info("Directory %s already exists, deleting it", path)
            if not self._reclaim(path):
                logger.warning("Failed to delete existing directory %s, trying to continue", path)

        result = self._run_clone(adapter, descriptor.url, path, deadline)
        if result.success:
            self._verify_checkout(descriptor, adapter, path)
            return

        error = result.to_error()
        if not os.path.lexists(path):
            raise SynchronizationFailedError(
                name, f"Clone of {descriptor.url} failed: {_describe_failure(result)}"
            ) from error

        # A partial checkout is ambiguous: wipe it and retry exactly once
        logger.warning("Clone of %s failed (%s), retrying once", descriptor.url, _describe_failure(result))
        if not self._reclaim(path):
            raise SynchronizationFailedError(
                name,
                f"Clone of {descriptor.url} failed ({_describe_failure(result)}) "
                "and the partial checkout could not be removed",
            ) from error

        self._sleep(self.config.retry.cleanup_delay)
        if deadline.expired:
            raise SynchronizationFailedError(
                name, f"Deadline expired before retrying clone of {descriptor.url}"
            ) from error

        retry = self._run_clone(adapter, descriptor.url, path, deadline)
        if retry.success:
            self._verify_checkout(descriptor, adapter, path)
            return

        self._reclaim(path)
        raise SynchronizationFailedError(
            name, f"Clone of {descriptor.url} failed after retry: {_describe_failure(retry)}"
        ) from retry.to_error()

    def _run_clone(self, adapter: VcsAdapter, url: str, path: Path, deadline: Deadline) -> CommandResult:
        return self._runner.execute(
            adapter.clone_command(url, path),
            self.base_path,
            timeout=deadline.clamp(self.config.commands.clone_timeout),
            env=adapter.environment(),
        )

    def _verify_checkout(self, descriptor: RepositoryDescriptor, adapter: VcsAdapter, path: Path) -> None:
        if not adapter.has_marker(path):
            raise SynchronizationFailedError(
                descriptor.project_name,
                f"Clone of {descriptor.url} finished but {path} has no {adapter.marker} directory",
            )

    def _stale_result(self, path: Path, adapter: VcsAdapter, detail: str) -> SyncResult:
        return SyncResult(
            path=path,
            state=self._state_of(path, adapter),
            action=SyncAction.STALE,
            detail=detail,
        )
