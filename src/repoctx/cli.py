"""repoctx CLI interface.

Commands:
- sync: Clone, update or re-clone a repository mirror
- cleanup: Delete a project's mirror
- validate: Check that a remote repository is reachable
- status: Show the on-disk state of a project's mirror
- files: List the files eligible for analysis
- relevant: Rank files by relevance to a query
- structure: Summarize the structure of a mirror
- context: Synchronize a mirror and assemble the context for a query
- check: Validate VCS client availability and storage
- init: Initialize repoctx configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit

Exit codes: 0 on success, 1 on error, 2 when a stale mirror was served.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer

from repoctx import __version__
from repoctx.config import RepoctxConfig, create_default_config, load_config
from repoctx.errors import RepoctxError
from repoctx.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="repoctx",
    help="Repository mirror synchronizer and query context builder",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: RepoctxConfig | None = None
_logger = get_logger()

EXIT_STALE = 2

KindOption = Annotated[
    str,
    typer.Option(
        "--kind",
        "-k",
        help="Version-control kind: git or svn",
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Output results as JSON",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"repoctx {__version__}")
        raise typer.Exit()


def _get_config() -> RepoctxConfig:
    return _config or RepoctxConfig()


def _fail(error: RepoctxError, json_output: bool = False) -> typer.Exit:
    """Report an error and return the exit to raise."""
    if json_output:
        typer.echo(json.dumps({"error": error.to_dict()}, indent=2))
    else:
        _logger.error(error.detail)
    _logger.debug("Error details", exc_info=error)
    return typer.Exit(1)


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """repoctx - keep local mirrors of remote repositories and build query contexts."""
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (ValueError, OSError) as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


# =============================================================================
# Mirror commands
# =============================================================================


@app.command()
def sync(
    url: Annotated[str, typer.Argument(help="Repository URL")],
    project: Annotated[
        str,
        typer.Option(
            "--project",
            "-p",
            help="Project name (used as the mirror directory name)",
        ),
    ],
    kind: KindOption = "git",
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Discard the local mirror and clone fresh",
        ),
    ] = False,
    json_output: JsonOption = False,
) -> None:
    """Clone, update or re-clone a repository mirror."""
    from repoctx.sync.synchronizer import RepositorySynchronizer

    try:
        synchronizer = RepositorySynchronizer(_get_config())
        if force:
            result = synchronizer.force_resynchronize(url, kind, project)
        else:
            result = synchronizer.synchronize(url, kind, project)
    except RepoctxError as e:
        raise _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    elif result.is_stale:
        typer.echo(f"⚠️  Serving existing files at {result.path}")
        typer.echo(f"   • {result.detail}")
    else:
        typer.echo(f"✅ {project} {result.action.value}: {result.path}")

    if result.is_stale:
        raise typer.Exit(EXIT_STALE)


@app.command()
def cleanup(
    project: Annotated[str, typer.Argument(help="Project name")],
    json_output: JsonOption = False,
) -> None:
    """Delete a project's mirror."""
    from repoctx.sync.synchronizer import RepositorySynchronizer

    try:
        synchronizer = RepositorySynchronizer(_get_config())
        path = synchronizer.resolve_path(project)
        removed = synchronizer.cleanup(project)
    except RepoctxError as e:
        raise _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps({"path": str(path), "removed": removed}, indent=2))
    elif removed:
        typer.echo(f"✅ Removed {path}")
    else:
        typer.echo(f"❌ Could not fully remove {path}")

    if not removed:
        raise typer.Exit(1)


@app.command()
def validate(
    url: Annotated[str, typer.Argument(help="Repository URL")],
    kind: KindOption = "git",
) -> None:
    """Check that a remote repository is reachable."""
    from repoctx.sync.synchronizer import RepositorySynchronizer

    try:
        synchronizer = RepositorySynchronizer(_get_config())
        reachable = synchronizer.validate_repository(url, kind)
    except RepoctxError as e:
        raise _fail(e)

    if reachable:
        typer.echo(f"✅ Repository is reachable: {url}")
        raise typer.Exit(0)

    typer.echo(f"❌ Repository is not reachable: {url}")
    raise typer.Exit(1)


@app.command()
def status(
    project: Annotated[str, typer.Argument(help="Project name")],
    kind: KindOption = "git",
    json_output: JsonOption = False,
) -> None:
    """Show the on-disk state of a project's mirror."""
    from repoctx.sync.synchronizer import RepositorySynchronizer

    try:
        synchronizer = RepositorySynchronizer(_get_config())
        mirror = synchronizer.inspect(project, kind)
    except RepoctxError as e:
        raise _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps(mirror.to_dict(), indent=2))
    else:
        typer.echo(f"{project}: {mirror.state.value}")
        typer.echo(f"   └─ {mirror.root_path}")


# =============================================================================
# Analysis commands
# =============================================================================


@app.command()
def files(
    path: Annotated[
        Path,
        typer.Argument(
            help="Directory to catalog",
        ),
    ],
    ext: Annotated[
        list[str] | None,
        typer.Option(
            "--ext",
            "-e",
            help="Only include this extension (repeatable)",
        ),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """List the files eligible for analysis."""
    from repoctx.catalog.file_catalog import FileCatalog

    catalog = FileCatalog(_get_config().catalog)
    try:
        entries = catalog.list_files(path, ext or None)
    except RepoctxError as e:
        raise _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps(
            [{"path": e.relative_path, "size_bytes": e.size_bytes} for e in entries],
            indent=2,
        ))
        return

    for entry in entries:
        typer.echo(entry.relative_path)


@app.command()
def relevant(
    query: Annotated[str, typer.Argument(help="Free-text query")],
    path: Annotated[
        Path,
        typer.Option(
            "--path",
            help="Mirror directory to search",
        ),
    ],
    top_k: Annotated[
        int | None,
        typer.Option(
            "--top-k",
            min=1,
            help="Maximum number of results",
        ),
    ] = None,
    max_candidates: Annotated[
        int | None,
        typer.Option(
            "--max-candidates",
            min=1,
            help="Maximum number of files scanned",
        ),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """Rank files by relevance to a query."""
    from repoctx.catalog.file_catalog import FileCatalog
    from repoctx.ranking.ranker import RelevanceRanker

    config = _get_config()
    ranker = RelevanceRanker(FileCatalog(config.catalog), config.ranking)
    try:
        ranked = ranker.find_relevant(query, path, max_candidates=max_candidates, top_k=top_k)
    except RepoctxError as e:
        raise _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps([f.to_dict() for f in ranked], indent=2))
        return

    if not ranked:
        typer.echo("No relevant files found")
        return
    for scored in ranked:
        typer.echo(f"{scored.score:>6}  {scored.relative_path}")


@app.command()
def structure(
    path: Annotated[Path, typer.Argument(help="Mirror directory to summarize")],
    json_output: JsonOption = False,
) -> None:
    """Summarize the structure of a mirror."""
    from repoctx.catalog.file_catalog import FileCatalog
    from repoctx.catalog.structure import StructureAnalyzer

    config = _get_config()
    analyzer = StructureAnalyzer(FileCatalog(config.catalog), config.context)
    try:
        summary = analyzer.analyze(path)
    except RepoctxError as e:
        raise _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
        return

    typer.echo(f"\n📁 {summary.project_path} ({summary.total_files} files)\n")
    for extension, count in summary.extension_counts.items():
        typer.echo(f"  {extension:<12} {count}")
    if summary.config_files:
        typer.echo("\nConfiguration files:")
        for config_file in summary.config_files:
            typer.echo(f"   • {config_file}")


@app.command()
def context(
    query: Annotated[str, typer.Argument(help="Free-text query")],
    url: Annotated[str, typer.Option("--url", help="Repository URL")],
    project: Annotated[
        str,
        typer.Option(
            "--project",
            "-p",
            help="Project name (used as the mirror directory name)",
        ),
    ],
    kind: KindOption = "git",
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            min=0,
            help="Overall time budget in seconds",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the context to this file instead of stdout",
        ),
    ] = None,
) -> None:
    """Synchronize a mirror and assemble the context for a query."""
    from repoctx.service import RepositoryService

    async def _prepare():
        async with RepositoryService(_get_config()) as service:
            return await service.prepare_context(url, kind, project, query, timeout=timeout)

    try:
        assembled = asyncio.run(_prepare())
    except RepoctxError as e:
        raise _fail(e)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(assembled.text, encoding="utf-8")
        _logger.info(f"Wrote context to {output}")
    else:
        typer.echo(assembled.text, nl=False)

    if assembled.stale:
        _logger.warning("Context was built from a stale mirror")
        raise typer.Exit(EXIT_STALE)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: JsonOption = False,
) -> None:
    """Validate VCS client availability and storage.

    Exit codes:
        0: All required checks passed
        1: A required tool is missing or storage is unusable
        2: Only optional tools missing (warnings)
    """
    from repoctx.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all(_get_config().storage.resolved_base_path)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        raise typer.Exit(0 if result.success else 1)

    typer.echo("\n🔍 Preflight Check Results\n")

    for check_result in result.checks:
        status_icon = "✅" if check_result.available else "❌"
        version_str = f" ({check_result.version})" if check_result.version else ""
        required_str = " [required]" if check_result.required else " [optional]"

        typer.echo(f"  {status_icon} {check_result.name}{version_str}{required_str}")
        if check_result.available and check_result.path:
            typer.echo(f"     └─ {check_result.path}")
        elif not check_result.available:
            typer.echo(f"     └─ {check_result.message}")

    typer.echo()

    if result.errors:
        typer.echo("❌ Preflight check FAILED")
        for error in result.errors:
            typer.echo(f"   • {error}")
        raise typer.Exit(1)
    elif result.warnings:
        typer.echo("⚠️  Preflight check passed with WARNINGS")
        for warning in result.warnings:
            typer.echo(f"   • {warning}")
        raise typer.Exit(2)
    else:
        typer.echo("✅ All preflight checks passed")
        raise typer.Exit(0)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize repoctx configuration.

    Creates .repoctx/config.yaml with the default settings.
    """
    config_dir = Path(".repoctx")
    config_dir.mkdir(exist_ok=True)
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config())
    _logger.info(f"Created config: {config_file}")

    typer.echo("\n✅ repoctx configuration initialized")
    typer.echo(f"   Config: {config_file}")
    raise typer.Exit(0)


if __name__ == "__main__":
    app()
