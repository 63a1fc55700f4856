"""Registry of version-control adapters (Tool Agnosticism).

Maps each VcsKind to the adapter class that handles it.

Adding a new VCS:
    1. Implement VcsAdapter (marker + command templates)
    2. Add the kind to VcsKind
    3. Register it in setup_default_adapters
"""

from typing import Any

from repoctx.errors import RepositoryValidationError
from repoctx.models.repository import VcsKind
from repoctx.process.runner import CommandRunner
from repoctx.vcs.base import VcsAdapter


class VcsRegistry:
    """Registry of adapters keyed by version-control kind."""

    def __init__(self) -> None:
        self._adapters: dict[VcsKind, type[VcsAdapter]] = {}

    def register(self, kind: VcsKind, adapter_class: type[VcsAdapter]) -> None:
        """Register (or replace) the adapter for a kind."""
        self._adapters[kind] = adapter_class

    def get_adapter(
        self,
        kind: "VcsKind | str",
        runner: CommandRunner | None = None,
    ) -> VcsAdapter:
        """Instantiate the adapter for a kind.

        Raises:
            RepositoryValidationError: If the kind is unknown or not registered
        """
        vcs_kind = VcsKind.parse(kind)
        if vcs_kind not in self._adapters:
            available = self.list_kinds()
            raise RepositoryValidationError(
                f"No adapter registered for '{vcs_kind.value}'. Available: {available}"
            )
        return self._adapters[vcs_kind](runner)

    def list_kinds(self) -> list[str]:
        return [kind.value for kind in self._adapters]

    def check_tool_availability(self) -> dict[str, bool]:
        """Map each registered kind to whether its client is installed."""
        return {
            kind.value: adapter_class().check_available()
            for kind, adapter_class in self._adapters.items()
        }

    def get_metadata(self) -> dict[str, Any]:
        return {"adapters": self.list_kinds()}


_registry: VcsRegistry | None = None


def setup_default_adapters(registry: VcsRegistry | None = None) -> VcsRegistry:
    """Register the git and svn adapters."""
    from repoctx.vcs.git import GitAdapter
    from repoctx.vcs.svn import SvnAdapter

    registry = registry or get_registry()
    registry.register(VcsKind.GIT, GitAdapter)
    registry.register(VcsKind.SVN, SvnAdapter)
    return registry


def get_registry() -> VcsRegistry:
    """Get the global registry instance, with default adapters registered."""
    global _registry
    if _registry is None:
        _registry = VcsRegistry()
        setup_default_adapters(_registry)
    return _registry


def reset_registry() -> None:
    """Reset the global registry (primarily for testing)."""
    global _registry
    _registry = None
