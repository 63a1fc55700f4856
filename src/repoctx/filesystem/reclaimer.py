"""Deletion of directory trees that may carry restrictive attributes.

VCS checkouts routinely contain read-only files (git packs, svn pristine
copies) and, on some platforms, read-only directories. DirectoryReclaimer
clears those attributes leaves-first and then removes the tree. A single
call is best-effort: a file locked by another process makes it return
False, and the caller decides whether to retry.
"""

import logging
import os
import shutil
import stat
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_WRITABLE_FILE = stat.S_IREAD | stat.S_IWRITE
_WRITABLE_DIR = stat.S_IREAD | stat.S_IWRITE | stat.S_IEXEC


def _make_writable(path: str, is_dir: bool) -> None:
    try:
        mode = os.lstat(path).st_mode
        if stat.S_ISLNK(mode):
            return
        os.chmod(path, stat.S_IMODE(mode) | (_WRITABLE_DIR if is_dir else _WRITABLE_FILE))
    except OSError as e:
        logger.debug("Could not clear attributes on %s: %s", path, e)


class DirectoryReclaimer:
    """Clears restrictive attributes and deletes a directory tree.

    Usage:
        reclaimer = DirectoryReclaimer()
        if not reclaimer.delete(path):
            ...  # still present, caller may retry
    """

    def delete(self, path: Path) -> bool:
        """Delete ``path`` and everything below it.

        Args:
            path: Directory to remove (a missing path is a no-op)

        Returns:
            True if the path no longer exists afterwards
        """
        path = Path(path)
        if not os.path.lexists(path):
            return True

        if path.is_symlink() or not path.is_dir():
            return self._unlink(path)

        cleared = self.clear_attributes(path)
        logger.debug("Cleared attributes on %d entries under %s", cleared, path)

        errors: list[str] = []
        self._rmtree(path, errors)
        for message in errors:
            logger.warning("Could not delete %s", message)

        removed = not os.path.lexists(path)
        if not removed:
            logger.warning("Directory still present after delete: %s", path)
        return removed

    def clear_attributes(self, root: Path) -> int:
        """Make every entry under ``root`` writable, leaves before parents.

        Uses an explicit stack instead of recursion so very deep trees
        cannot exhaust the interpreter's recursion limit. Symlinks are
        neither followed nor modified.

        Returns:
            Number of entries processed
        """
        directories: list[str] = []
        stack = [str(root)]

        # Pre-order collection; reversing it yields children before parents
        while stack:
            current = stack.pop()
            # The directory itself must be readable/executable to list it
            _make_writable(current, is_dir=True)
            directories.append(current)
            try:
                with os.scandir(current) as entries:
                    for entry in entries:
                        if entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
            except OSError as e:
                logger.debug("Could not list %s: %s", current, e)

        count = 0
        for directory in reversed(directories):
            try:
                with os.scandir(directory) as entries:
                    for entry in entries:
                        if not entry.is_dir(follow_symlinks=False):
                            _make_writable(entry.path, is_dir=False)
                            count += 1
            except OSError as e:
                logger.debug("Could not list %s: %s", directory, e)
            _make_writable(directory, is_dir=True)
            count += 1
        return count

    def _rmtree(self, path: Path, errors: list[str]) -> None:
        def on_error(func: Callable[..., Any], failed_path: str, exc: Any) -> None:
            if func not in (os.unlink, os.remove, os.rmdir):
                errors.append(f"{failed_path}: {exc}")
                return
            # Retry once after clearing attributes on the entry and its parent
            _make_writable(os.path.dirname(failed_path), is_dir=True)
            _make_writable(failed_path, is_dir=os.path.isdir(failed_path))
            try:
                func(failed_path)
            except FileNotFoundError:
                pass
            except OSError as e:
                errors.append(f"{failed_path}: {e}")

        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=on_error)
        else:
            shutil.rmtree(path, onerror=on_error)

    def _unlink(self, path: Path) -> bool:
        try:
            _make_writable(str(path), is_dir=False)
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not delete %s: %s", path, e)
        return not os.path.lexists(path)
