"""Unit tests for the VCS adapters and VcsRegistry."""

from pathlib import Path
from unittest.mock import patch

import pytest

from repoctx.errors import RepositoryValidationError
from repoctx.models import VcsKind
from repoctx.process import CommandResult
from repoctx.vcs import (
    GitAdapter,
    SvnAdapter,
    VcsAdapter,
    VcsRegistry,
    get_registry,
    reset_registry,
    setup_default_adapters,
)
from tests.fixtures.scripted_runner import MISSING_TOOL, ScriptedRunner


class VersionRunner(ScriptedRunner):
    """Answers version checks with a fixed banner."""

    def __init__(self, banner: str) -> None:
        super().__init__()
        self.banner = banner

    def execute(self, command, working_dir, timeout, env=None):
        self.calls.append((list(command), Path(working_dir), timeout))
        return CommandResult(list(command), Path(working_dir), timeout, exit_code=0, stdout=self.banner)


class TestGitAdapter:
    """Tests for GitAdapter command templates."""

    def test_commands(self, tmp_path: Path) -> None:
        adapter = GitAdapter()
        target = tmp_path / "Orders"

        assert adapter.clone_command("https://h/r.git", target) == ["git", "clone", "https://h/r.git", str(target)]
        assert adapter.update_command() == ["git", "pull", "origin"]
        assert adapter.validate_command("https://h/r.git") == ["git", "ls-remote", "https://h/r.git"]

    def test_never_prompts(self) -> None:
        assert GitAdapter().environment() == {"GIT_TERMINAL_PROMPT": "0"}

    def test_marker(self, tmp_path: Path) -> None:
        adapter = GitAdapter()

        assert not adapter.has_marker(tmp_path)
        (tmp_path / ".git").mkdir()
        assert adapter.has_marker(tmp_path)

    def test_marker_file_is_not_a_checkout(self, tmp_path: Path) -> None:
        (tmp_path / ".git").write_text("gitdir: elsewhere")

        assert not GitAdapter().has_marker(tmp_path)

    def test_version_first_line(self) -> None:
        runner = VersionRunner("git version 2.45.1\nextra\n")
        adapter = GitAdapter(runner)

        assert adapter.version == "git version 2.45.1"
        assert adapter.version == "git version 2.45.1"
        assert len(runner.calls) == 1

    def test_version_missing_tool(self) -> None:
        runner = ScriptedRunner()
        runner.script("--version", MISSING_TOOL)

        assert GitAdapter(runner).get_version() is None


class TestSvnAdapter:
    """Tests for SvnAdapter command templates."""

    def test_commands_are_non_interactive(self, tmp_path: Path) -> None:
        adapter = SvnAdapter()
        url = "svn://svn.example.com/repo/trunk"

        assert adapter.clone_command(url, tmp_path) == ["svn", "checkout", "--non-interactive", url, str(tmp_path)]
        assert adapter.update_command() == ["svn", "update", "--non-interactive"]
        assert adapter.validate_command(url) == ["svn", "info", "--non-interactive", url]
        assert adapter.marker == ".svn"
        assert adapter.environment() == {}


class TestVcsRegistry:
    """Tests for VcsRegistry."""

    def test_default_adapters(self) -> None:
        registry = get_registry()

        assert registry.list_kinds() == ["git", "svn"]
        assert isinstance(registry.get_adapter("git"), GitAdapter)
        assert isinstance(registry.get_adapter(VcsKind.SVN), SvnAdapter)

    def test_kind_is_case_insensitive(self) -> None:
        assert isinstance(get_registry().get_adapter(" Git "), GitAdapter)

    def test_unknown_kind(self) -> None:
        with pytest.raises(RepositoryValidationError, match="Unsupported repository type"):
            get_registry().get_adapter("mercurial")

    def test_unregistered_kind(self) -> None:
        registry = VcsRegistry()
        registry.register(VcsKind.GIT, GitAdapter)

        with pytest.raises(RepositoryValidationError, match="No adapter registered"):
            registry.get_adapter("svn")

    def test_runner_is_passed_through(self) -> None:
        runner = ScriptedRunner()

        adapter = get_registry().get_adapter("git", runner)

        assert adapter._runner is runner

    def test_register_replaces(self) -> None:
        class MirrorGitAdapter(GitAdapter):
            def clone_command(self, url: str, target: Path) -> list[str]:
                return [self.executable, "clone", "--mirror", url, str(target)]

        registry = setup_default_adapters(VcsRegistry())
        registry.register(VcsKind.GIT, MirrorGitAdapter)

        assert "--mirror" in registry.get_adapter("git").clone_command("https://h/r.git", Path("t"))

    def test_reset_registry(self) -> None:
        first = get_registry()
        reset_registry()

        assert get_registry() is not first

    def test_check_tool_availability(self) -> None:
        with patch("repoctx.vcs.base.shutil.which", side_effect=lambda name: "/usr/bin/git" if name == "git" else None):
            assert get_registry().check_tool_availability() == {"git": True, "svn": False}

    def test_adapter_metadata(self) -> None:
        with patch("repoctx.vcs.base.shutil.which", return_value=None):
            metadata = SvnAdapter().get_metadata()

        assert metadata == {"kind": "svn", "executable": "svn", "marker": ".svn", "available": False}

    def test_adapters_share_interface(self) -> None:
        for kind in get_registry().list_kinds():
            assert isinstance(get_registry().get_adapter(kind), VcsAdapter)
