"""Unit tests for repository and catalog models."""

from pathlib import Path

import pytest

from repoctx.errors import ErrorKind, RepositoryValidationError
from repoctx.models import (
    AnalysisContext,
    CatalogEntry,
    LocalMirror,
    MirrorState,
    ProjectStructure,
    RepositoryDescriptor,
    ScoredFile,
    SyncAction,
    SyncResult,
    VcsKind,
    sanitize_project_name,
)
from repoctx.models.repository import validate_repository_url


class TestVcsKind:
    """Tests for VcsKind parsing."""

    @pytest.mark.parametrize("value", ["git", "GIT", " Git "])
    def test_parse_git(self, value: str) -> None:
        """Test that kinds are parsed case-insensitively."""
        assert VcsKind.parse(value) is VcsKind.GIT

    def test_parse_svn(self) -> None:
        assert VcsKind.parse("SVN") is VcsKind.SVN

    def test_parse_enum_passthrough(self) -> None:
        assert VcsKind.parse(VcsKind.SVN) is VcsKind.SVN

    @pytest.mark.parametrize("value", ["", "hg", "mercurial"])
    def test_parse_unsupported(self, value: str) -> None:
        """Test that unknown kinds are validation errors."""
        with pytest.raises(RepositoryValidationError) as exc_info:
            VcsKind.parse(value)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert "Unsupported repository type" in str(exc_info.value)


class TestSanitizeProjectName:
    """Tests for project name sanitization."""

    def test_plain_name_unchanged(self) -> None:
        assert sanitize_project_name("Orders Service") == "Orders Service"

    def test_invalid_characters_replaced(self) -> None:
        """Test that every path-hostile character becomes an underscore."""
        assert sanitize_project_name('a<b>c:d"e/f\\g|h?i*j') == "a_b_c_d_e_f_g_h_i_j"

    def test_control_characters_replaced(self) -> None:
        assert sanitize_project_name("line\x01break\x07end") == "line_break_end"

    def test_separators_cannot_escape(self) -> None:
        """Test that traversal attempts collapse into one segment."""
        sanitized = sanitize_project_name("../../etc/passwd")

        assert "/" not in sanitized
        assert sanitized == ".._.._etc_passwd"

    def test_deterministic(self) -> None:
        """Test that the same name always maps to the same segment."""
        assert sanitize_project_name("Team/Project: 1") == sanitize_project_name("Team/Project: 1")

    @pytest.mark.parametrize("name", ["", "   ", ".", ".."])
    def test_unusable_names_rejected(self, name: str) -> None:
        with pytest.raises(RepositoryValidationError):
            sanitize_project_name(name)


class TestValidateRepositoryUrl:
    """Tests for repository URL validation."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/example/repo.git",
            "http://svn.example.com/repos/trunk",
            "ssh://git@example.com/repo.git",
            "git://example.com/repo.git",
            "svn://svn.example.com/repo",
            "svn+ssh://svn.example.com/repo",
            "file:///srv/git/repo.git",
            "git@github.com:example/repo.git",
        ],
    )
    def test_accepts_supported_urls(self, url: str) -> None:
        assert validate_repository_url(url) == url

    def test_strips_surrounding_whitespace(self) -> None:
        assert validate_repository_url("  https://example.com/r.git  ") == "https://example.com/r.git"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "   ",
            "--upload-pack=touch /tmp/pwned",
            "https://example.com/my repo.git",
            "ftp://example.com/repo",
            "/srv/git/repo.git",
            "https://",
        ],
    )
    def test_rejects_malformed_urls(self, url: str) -> None:
        with pytest.raises(RepositoryValidationError):
            validate_repository_url(url)


class TestRepositoryDescriptor:
    """Tests for RepositoryDescriptor."""

    def test_create_validates_and_keeps_name(self) -> None:
        """Test that the caller-facing name is kept and the key is sanitized."""
        descriptor = RepositoryDescriptor.create(" https://example.com/r.git ", "GIT", "Team/Repo")

        assert descriptor.url == "https://example.com/r.git"
        assert descriptor.kind is VcsKind.GIT
        assert descriptor.project_name == "Team/Repo"
        assert descriptor.key == "Team_Repo"

    def test_create_rejects_bad_name(self) -> None:
        with pytest.raises(RepositoryValidationError):
            RepositoryDescriptor.create("https://example.com/r.git", "git", "..")


class TestMirrorModels:
    """Tests for LocalMirror and SyncResult."""

    def test_local_mirror_flags(self) -> None:
        absent = LocalMirror(Path("/m/p"), VcsKind.GIT, MirrorState.ABSENT)
        invalid = LocalMirror(Path("/m/p"), VcsKind.GIT, MirrorState.INVALID)
        stale = LocalMirror(Path("/m/p"), VcsKind.GIT, MirrorState.VALID_STALE)

        assert not absent.exists and not absent.is_valid
        assert invalid.exists and not invalid.is_valid
        assert stale.exists and stale.is_valid

    def test_local_mirror_to_dict(self) -> None:
        mirror = LocalMirror(Path("/m/p"), VcsKind.SVN, MirrorState.VALID_STALE)

        assert mirror.to_dict() == {"root_path": "/m/p", "kind": "svn", "state": "valid-stale"}

    def test_sync_result_stale(self) -> None:
        """Test that only the stale action marks a result as stale."""
        fresh = SyncResult(Path("/m/p"), MirrorState.VALID_FRESH, SyncAction.UPDATED)
        stale = SyncResult(Path("/m/p"), MirrorState.VALID_STALE, SyncAction.STALE, detail="update failed")

        assert not fresh.is_stale
        assert stale.is_stale
        data = stale.to_dict()
        assert data["action"] == "stale"
        assert data["state"] == "valid-stale"
        assert data["detail"] == "update failed"


class TestCatalogModels:
    """Tests for catalog entities."""

    def test_catalog_entry_extension_lowercase(self) -> None:
        entry = CatalogEntry(Path("/r/db/Migration001.SQL"), "db/Migration001.SQL", 10)

        assert entry.name == "Migration001.SQL"
        assert entry.extension == ".sql"

    def test_catalog_entry_without_extension(self) -> None:
        assert CatalogEntry(Path("/r/Makefile"), "Makefile", 1).extension == ""

    def test_scored_file_to_dict(self) -> None:
        scored = ScoredFile(Path("/r/a.py"), "a.py", 12)

        assert scored.to_dict() == {"path": "a.py", "score": 12}

    def test_project_structure_to_dict(self) -> None:
        structure = ProjectStructure(
            project_path=Path("/r"),
            total_files=2,
            extension_counts={".py": 2},
            files_by_extension={".py": ["a.py", "b.py"]},
        )

        data = structure.to_dict()

        assert data["project_path"] == "/r"
        assert data["extension_counts"] == {".py": 2}
        assert data["files_by_extension"] == {".py": ["a.py", "b.py"]}
        assert data["config_files"] == []
        assert "analyzed_at" in data

    def test_analysis_context_to_dict(self) -> None:
        context = AnalysisContext(
            query="where is auth",
            text="...",
            files_included=["auth.py"],
            relevant_files=[ScoredFile(Path("/r/auth.py"), "auth.py", 11)],
        )

        data = context.to_dict()

        assert data["files_included"] == ["auth.py"]
        assert data["relevant_files"] == [{"path": "auth.py", "score": 11}]
        assert data["stale"] is False
