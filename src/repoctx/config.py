"""repoctx configuration system.

Configuration is YAML-based with minimal CLI overrides.
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.repoctx/config.yaml
3. ./repoctx.yaml

All configuration objects are frozen: a RepoctxConfig is built once and
injected into the components that need it.
"""

import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_BASE_PATH = "Storage/Repositories"

DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = (
    "bin",
    "obj",
    "node_modules",
    ".git",
    ".svn",
    ".hg",
    "packages",
    "dist",
    "build",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
)

DEFAULT_EXCLUDE_EXTENSIONS: tuple[str, ...] = (
    ".exe",
    ".dll",
    ".pdb",
    ".cache",
    ".tmp",
    ".so",
    ".dylib",
    ".o",
    ".obj",
    ".a",
    ".lib",
    ".class",
    ".pyc",
    ".pyo",
)


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")


def _normalize_extension(extension: str) -> str:
    extension = extension.strip().lower()
    return extension if extension.startswith(".") else f".{extension}"


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class StorageConfig:
    """Where mirrors live.

    Attributes:
        base_path: Base directory for all mirrors (relative paths resolve against cwd)
    """

    base_path: str = DEFAULT_BASE_PATH

    @property
    def resolved_base_path(self) -> Path:
        return Path(self.base_path).expanduser().resolve()


@dataclass(frozen=True)
class CommandConfig:
    """Timeouts for external version-control commands, in seconds.

    Attributes:
        timeout: Update (pull/update) timeout
        clone_timeout: Clone/checkout timeout
        validate_timeout: ls-remote/info timeout
    """

    timeout: float = 300
    clone_timeout: float = 600
    validate_timeout: float = 30

    def __post_init__(self) -> None:
        _require_positive("commands.timeout", self.timeout)
        _require_positive("commands.clone_timeout", self.clone_timeout)
        _require_positive("commands.validate_timeout", self.validate_timeout)


@dataclass(frozen=True)
class CatalogConfig:
    """File enumeration filters.

    Attributes:
        max_file_size: Files larger than this (bytes) are excluded
        exclude_dirs: Directory segments that are never descended into
        exclude_extensions: Extensions that are never cataloged
    """

    max_file_size: int = 1_048_576
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    exclude_extensions: tuple[str, ...] = DEFAULT_EXCLUDE_EXTENSIONS

    def __post_init__(self) -> None:
        _require_positive("catalog.max_file_size", self.max_file_size)
        # Normalize so lookups are case-insensitive and dot-prefixed
        object.__setattr__(
            self, "exclude_dirs", tuple(d.strip().lower() for d in self.exclude_dirs if d.strip())
        )
        object.__setattr__(
            self,
            "exclude_extensions",
            tuple(_normalize_extension(e) for e in self.exclude_extensions if e.strip()),
        )


@dataclass(frozen=True)
class RankingConfig:
    """Relevance ranking bounds.

    Attributes:
        max_candidates: Maximum files inspected per ranking call
        top_k: Maximum files returned
    """

    max_candidates: int = 200
    top_k: int = 15

    def __post_init__(self) -> None:
        _require_positive("ranking.max_candidates", self.max_candidates)
        _require_positive("ranking.top_k", self.top_k)


@dataclass(frozen=True)
class ContextConfig:
    """Context assembly limits.

    Attributes:
        max_files: Relevant files whose content is embedded
        max_file_chars: Per-file content truncation
        structure_list_limit: Per-extension file list truncation
        config_file_limit: Config file list truncation
    """

    max_files: int = 8
    max_file_chars: int = 3000
    structure_list_limit: int = 50
    config_file_limit: int = 20

    def __post_init__(self) -> None:
        _require_positive("context.max_files", self.max_files)
        _require_positive("context.max_file_chars", self.max_file_chars)
        _require_positive("context.structure_list_limit", self.structure_list_limit)
        _require_positive("context.config_file_limit", self.config_file_limit)


@dataclass(frozen=True)
class RetryConfig:
    """Bounded retry settings per operation.

    Attributes:
        cleanup_attempts: Delete-and-verify attempts during cleanup
        cleanup_delay: Pause before the second cleanup attempt (seconds)
        cleanup_backoff: Multiplier applied to the pause after each attempt
        update_attempts: Update command attempts
        update_delay: Pause between update attempts (seconds)
    """

    cleanup_attempts: int = 3
    cleanup_delay: float = 0.5
    cleanup_backoff: float = 2.0
    update_attempts: int = 2
    update_delay: float = 1.0

    def __post_init__(self) -> None:
        _require_positive("retry.cleanup_attempts", self.cleanup_attempts)
        _require_positive("retry.update_attempts", self.update_attempts)
        if self.cleanup_delay < 0 or self.update_delay < 0:
            raise ValueError("retry delays must not be negative")
        if self.cleanup_backoff < 1:
            raise ValueError(f"retry.cleanup_backoff must be >= 1 (got {self.cleanup_backoff})")


@dataclass(frozen=True)
class WorkerConfig:
    """Worker pool for blocking filesystem and process work.

    Attributes:
        max_workers: Threads available to the async service
    """

    max_workers: int = 4

    def __post_init__(self) -> None:
        _require_positive("workers.max_workers", self.max_workers)


@dataclass(frozen=True)
class RepoctxConfig:
    """Top-level repoctx configuration.

    Attributes:
        storage: Mirror base directory
        commands: External command timeouts
        catalog: File enumeration filters
        ranking: Ranking bounds
        context: Context assembly limits
        retry: Retry policies
        workers: Worker pool size
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    commands: CommandConfig = field(default_factory=CommandConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    context: ContextConfig = field(default_factory=ContextConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    workers: WorkerConfig = field(default_factory=WorkerConfig)

    config_path: Path | None = field(default=None, repr=False, compare=False)


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.
    Example: ${REPOCTX_STORAGE} -> value of REPOCTX_STORAGE

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.repoctx/config.yaml
    2. ./repoctx.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".repoctx" / "config.yaml",
        start_path / "repoctx.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def _string_list(section: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = section.get(key, default)
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Config value '{key}' must be a list of strings")
    return tuple(str(item) for item in value)


def load_config_from_dict(data: dict[str, Any]) -> RepoctxConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        RepoctxConfig instance
    """
    data = substitute_env_vars(data)
    defaults = RepoctxConfig()

    storage_data = _section(data, "storage")
    storage = StorageConfig(
        base_path=str(storage_data.get("base_path", defaults.storage.base_path)),
    )

    commands_data = _section(data, "commands")
    commands = CommandConfig(
        timeout=commands_data.get("timeout", defaults.commands.timeout),
        clone_timeout=commands_data.get("clone_timeout", defaults.commands.clone_timeout),
        validate_timeout=commands_data.get("validate_timeout", defaults.commands.validate_timeout),
    )

    catalog_data = _section(data, "catalog")
    catalog = CatalogConfig(
        max_file_size=catalog_data.get("max_file_size", defaults.catalog.max_file_size),
        exclude_dirs=_string_list(catalog_data, "exclude_dirs", defaults.catalog.exclude_dirs),
        exclude_extensions=_string_list(
            catalog_data, "exclude_extensions", defaults.catalog.exclude_extensions
        ),
    )

    ranking_data = _section(data, "ranking")
    ranking = RankingConfig(
        max_candidates=ranking_data.get("max_candidates", defaults.ranking.max_candidates),
        top_k=ranking_data.get("top_k", defaults.ranking.top_k),
    )

    context_data = _section(data, "context")
    context = ContextConfig(
        max_files=context_data.get("max_files", defaults.context.max_files),
        max_file_chars=context_data.get("max_file_chars", defaults.context.max_file_chars),
        structure_list_limit=context_data.get(
            "structure_list_limit", defaults.context.structure_list_limit
        ),
        config_file_limit=context_data.get(
            "config_file_limit", defaults.context.config_file_limit
        ),
    )

    retry_data = _section(data, "retry")
    retry = RetryConfig(
        cleanup_attempts=retry_data.get("cleanup_attempts", defaults.retry.cleanup_attempts),
        cleanup_delay=retry_data.get("cleanup_delay", defaults.retry.cleanup_delay),
        cleanup_backoff=retry_data.get("cleanup_backoff", defaults.retry.cleanup_backoff),
        update_attempts=retry_data.get("update_attempts", defaults.retry.update_attempts),
        update_delay=retry_data.get("update_delay", defaults.retry.update_delay),
    )

    workers_data = _section(data, "workers")
    workers = WorkerConfig(
        max_workers=workers_data.get("max_workers", defaults.workers.max_workers),
    )

    return RepoctxConfig(
        storage=storage,
        commands=commands,
        catalog=catalog,
        ranking=ranking,
        context=context,
        retry=retry,
        workers=workers,
    )


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> RepoctxConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        RepoctxConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is None:
        return RepoctxConfig()

    with open(found_path) as f:
        data = yaml.safe_load(f) or {}
    return replace(load_config_from_dict(data), config_path=found_path)


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# repoctx Configuration

# Where local mirrors are stored (one sub-directory per project)
storage:
  base_path: "Storage/Repositories"  # or "${REPOCTX_STORAGE}"

# External command timeouts in seconds
commands:
  timeout: 300          # git pull / svn update
  clone_timeout: 600    # git clone / svn checkout
  validate_timeout: 30  # git ls-remote / svn info

# File enumeration
catalog:
  max_file_size: 1048576  # bytes
  # exclude_dirs: ["bin", "obj", "node_modules", ".git", ".svn", "dist", "build"]
  # exclude_extensions: [".exe", ".dll", ".pdb", ".cache", ".tmp"]

# Relevance ranking
ranking:
  max_candidates: 200  # files inspected per query
  top_k: 15            # files returned per query

# Context assembly
context:
  max_files: 8
  max_file_chars: 3000
  structure_list_limit: 50
  config_file_limit: 20

# Retry policies
retry:
  cleanup_attempts: 3
  cleanup_delay: 0.5
  cleanup_backoff: 2.0
  update_attempts: 2
  update_delay: 1.0

# Worker pool for concurrent requests
workers:
  max_workers: 4
'''
