"""Filesystem maintenance for local mirrors."""

from repoctx.filesystem.reclaimer import DirectoryReclaimer

__all__ = ["DirectoryReclaimer"]
