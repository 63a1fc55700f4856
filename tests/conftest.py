"""Shared pytest fixtures for repoctx tests.

Fixtures are organized by category:
- Path fixtures: Sample projects and mirror base directories
- Configuration fixtures: Test configs with fast retries
- Synchronizer fixtures: Synchronizers wired to a scripted runner
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from repoctx.config import RepoctxConfig, load_config_from_dict
from repoctx.sync.synchronizer import RepositorySynchronizer
from repoctx.vcs.registry import reset_registry
from tests.fixtures import build_sample_project
from tests.fixtures.scripted_runner import ScriptedRunner

# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_global_state() -> Iterator[None]:
    """Reset the adapter registry and drop handlers installed by the CLI."""
    yield
    reset_registry()
    repoctx_logger = logging.getLogger("repoctx")
    repoctx_logger.handlers.clear()
    repoctx_logger.setLevel(logging.NOTSET)


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Create the sample web service project in a temporary directory."""
    return build_sample_project(tmp_path / "sample_project")


@pytest.fixture
def base_path(tmp_path: Path) -> Path:
    """Return a (not yet created) mirror base directory."""
    return tmp_path / "Storage" / "Repositories"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid repoctx configuration."""
    return {
        "storage": {
            "base_path": "mirrors",
        }
    }


@pytest.fixture
def full_config() -> dict[str, Any]:
    """Return a complete repoctx configuration with all options."""
    return {
        "storage": {"base_path": "/srv/mirrors"},
        "commands": {"timeout": 120, "clone_timeout": 900, "validate_timeout": 15},
        "catalog": {
            "max_file_size": 4096,
            "exclude_dirs": ["vendor", "Node_Modules"],
            "exclude_extensions": ["log", ".TMP"],
        },
        "ranking": {"max_candidates": 50, "top_k": 5},
        "context": {
            "max_files": 3,
            "max_file_chars": 100,
            "structure_list_limit": 10,
            "config_file_limit": 5,
        },
        "retry": {
            "cleanup_attempts": 5,
            "cleanup_delay": 0.1,
            "cleanup_backoff": 1.5,
            "update_attempts": 1,
            "update_delay": 0.0,
        },
        "workers": {"max_workers": 2},
    }


@pytest.fixture
def repo_config(base_path: Path) -> RepoctxConfig:
    """Config rooted in a temporary base path with zero retry delays."""
    return load_config_from_dict({
        "storage": {"base_path": str(base_path)},
        "retry": {"cleanup_delay": 0, "update_delay": 0},
    })


# =============================================================================
# Synchronizer Fixtures
# =============================================================================


@pytest.fixture
def scripted_runner() -> ScriptedRunner:
    """Runner that records commands and simulates checkouts."""
    return ScriptedRunner()


@pytest.fixture
def sleeps() -> list[float]:
    """Collects the pauses requested by retry policies."""
    return []


@pytest.fixture
def synchronizer(
    repo_config: RepoctxConfig,
    scripted_runner: ScriptedRunner,
    sleeps: list[float],
) -> RepositorySynchronizer:
    """Synchronizer wired to the scripted runner, never sleeping."""
    return RepositorySynchronizer(repo_config, runner=scripted_runner, sleep=sleeps.append)
