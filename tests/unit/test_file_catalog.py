"""Unit tests for FileCatalog."""

from pathlib import Path

import pytest

from repoctx.catalog import FileCatalog, normalize_extensions
from repoctx.config import CatalogConfig
from repoctx.errors import MirrorNotFoundError
from tests.fixtures import build_tree


def relative_paths(catalog: FileCatalog, root: Path, extension_filter=None) -> list[str]:
    return [e.relative_path for e in catalog.enumerate(root, extension_filter)]


class TestNormalizeExtensions:
    """Tests for extension filter normalization."""

    def test_none(self) -> None:
        assert normalize_extensions(None) is None

    def test_single_string(self) -> None:
        assert normalize_extensions("CS") == frozenset({".cs"})

    def test_list(self) -> None:
        assert normalize_extensions([".Js", "ts", " py "]) == frozenset({".js", ".ts", ".py"})

    def test_empty_means_no_filter(self) -> None:
        assert normalize_extensions(["", "."]) is None


class TestFileCatalog:
    """Tests for FileCatalog.enumerate."""

    def test_sample_project_order_and_exclusions(self, sample_project: Path) -> None:
        """Test deterministic order with excluded directories skipped."""
        assert relative_paths(FileCatalog(), sample_project) == [
            "README.md",
            "appsettings.json",
            "config/logging.yaml",
            "db/Migration001.sql",
            "db/Migration002.sql",
            "src/orders/models.py",
            "src/orders/service.py",
            "src/payments/gateway.py",
        ]

    def test_node_modules_never_yielded(self, sample_project: Path) -> None:
        """Test that a file under node_modules is excluded at any depth."""
        build_tree(sample_project, {"src/web/node_modules/pkg/index.js": "x"})

        paths = relative_paths(FileCatalog(), sample_project)

        assert not any("node_modules" in p for p in paths)

    def test_excluded_dirs_case_insensitive(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "r", {"Bin/app.txt": "x", "OBJ/app.txt": "x", "keep/app.txt": "x"})

        assert relative_paths(FileCatalog(), root) == ["keep/app.txt"]

    def test_excluded_extensions(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "r", {
            "app.exe": "x",
            "lib.DLL": "x",
            "app.pdb": "x",
            "x.cache": "x",
            "y.tmp": "x",
            "app.cs": "x",
        })

        assert relative_paths(FileCatalog(), root) == ["app.cs"]

    def test_extension_filter(self, sample_project: Path) -> None:
        assert relative_paths(FileCatalog(), sample_project, "sql") == [
            "db/Migration001.sql",
            "db/Migration002.sql",
        ]

    def test_extension_filter_multiple(self, sample_project: Path) -> None:
        paths = relative_paths(FileCatalog(), sample_project, [".json", ".YAML"])

        assert paths == ["appsettings.json", "config/logging.yaml"]

    def test_size_cap(self, tmp_path: Path) -> None:
        """Test that files above the size limit are excluded."""
        root = build_tree(tmp_path / "r", {"small.txt": "x" * 10, "big.txt": "x" * 11})
        catalog = FileCatalog(CatalogConfig(max_file_size=10))

        entries = list(catalog.enumerate(root))

        assert [e.relative_path for e in entries] == ["small.txt"]
        assert entries[0].size_bytes == 10

    def test_default_size_cap_is_one_mebibyte(self, tmp_path: Path) -> None:
        root = build_tree(tmp_path / "r", {"edge.txt": b"x" * 1_048_576, "over.txt": b"x" * 1_048_577})

        assert relative_paths(FileCatalog(), root) == ["edge.txt"]

    def test_entries_carry_absolute_paths(self, sample_project: Path) -> None:
        entry = next(iter(FileCatalog().enumerate(sample_project)))

        assert entry.path.is_absolute()
        assert entry.path == sample_project.resolve() / "README.md"

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        """Test that a missing root is an error, not an empty sequence."""
        with pytest.raises(MirrorNotFoundError):
            FileCatalog().enumerate(tmp_path / "missing")

    def test_symlinked_file_outside_root_skipped(self, tmp_path: Path) -> None:
        """Test that a symlink pointing at a host file is never cataloged."""
        secret = tmp_path / "secret.txt"
        secret.write_text("database password")
        root = build_tree(tmp_path / "mirror", {"README.md": "orders"})
        (root / "link.txt").symlink_to(secret)

        assert relative_paths(FileCatalog(), root) == ["README.md"]

    def test_symlinked_directory_not_followed(self, tmp_path: Path) -> None:
        host = build_tree(tmp_path / "host", {"passwd.txt": "root"})
        root = build_tree(tmp_path / "mirror", {"src/app.py": "x"})
        (root / "etc").symlink_to(host, target_is_directory=True)

        assert relative_paths(FileCatalog(), root) == ["src/app.py"]

    def test_enumeration_is_restartable(self, sample_project: Path) -> None:
        catalog = FileCatalog()

        assert relative_paths(catalog, sample_project) == relative_paths(catalog, sample_project)

    def test_list_files(self, sample_project: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("INFO", logger="repoctx"):
            entries = FileCatalog().list_files(sample_project)

        assert len(entries) == 8
        assert "Found 8 files" in caplog.text


class TestReadText:
    """Tests for FileCatalog.read_text."""

    def test_reads_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("héllo", encoding="utf-8")

        assert FileCatalog().read_text(path) == "héllo"

    def test_replaces_undecodable_bytes(self, tmp_path: Path) -> None:
        path = tmp_path / "bin.txt"
        path.write_bytes(b"ok\xff\xfeok")

        assert FileCatalog().read_text(path) == "ok��ok"

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        assert FileCatalog().read_text(tmp_path / "missing.txt") is None

    def test_directory_returns_none(self, tmp_path: Path) -> None:
        assert FileCatalog().read_text(tmp_path) is None
