"""Version-control adapters.

- VcsAdapter: Abstract interface (marker + command templates)
- GitAdapter / SvnAdapter: Concrete clients
- VcsRegistry: Kind -> adapter lookup
"""

from repoctx.vcs.base import VcsAdapter
from repoctx.vcs.git import GitAdapter
from repoctx.vcs.registry import (
    VcsRegistry,
    get_registry,
    reset_registry,
    setup_default_adapters,
)
from repoctx.vcs.svn import SvnAdapter

__all__ = [
    "VcsAdapter",
    "GitAdapter",
    "SvnAdapter",
    "VcsRegistry",
    "get_registry",
    "reset_registry",
    "setup_default_adapters",
]
