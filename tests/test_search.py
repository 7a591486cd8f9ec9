"""Tests for search_files tool."""

import os

import pytest

from secure_fs_mcp.tools.search import search_files, walk_matches


@pytest.fixture
def tree(root):
    """A small project tree under the allowed root."""
    (root / "src").mkdir()
    (root / "src" / "main.py").write_text("x")
    (root / "src" / "Helper.PY").write_text("x")
    (root / "docs").mkdir()
    (root / "docs" / "guide.md").write_text("x")
    (root / "docs" / "python-notes").mkdir()
    return root


class TestSearchFiles:
    """Test suite for search_files tool."""

    def test_finds_files_and_directories(self, sandbox, tree):
        result = search_files(sandbox, str(tree), "py")

        assert result["success"] is True
        assert result["matches"] == [
            str(tree / "docs" / "python-notes"),
            str(tree / "src" / "Helper.PY"),
            str(tree / "src" / "main.py"),
        ]
        assert result["skipped"] == []
        assert result["message"] == "\n".join(result["matches"])

    def test_case_insensitive(self, sandbox, tree):
        result = search_files(sandbox, str(tree), "HELPER")
        assert result["matches"] == [str(tree / "src" / "Helper.PY")]

    def test_no_matches(self, sandbox, tree):
        result = search_files(sandbox, str(tree), "nothing-here")

        assert result["success"] is True
        assert result["matches"] == []
        assert result["message"] == "No matches found"

    def test_start_from_subdirectory(self, sandbox, tree):
        result = search_files(sandbox, str(tree / "docs"), "guide")
        assert result["matches"] == [str(tree / "docs" / "guide.md")]

    def test_escaping_symlink_is_skipped(self, sandbox, tree, outside):
        """An entry that resolves outside the roots is skipped, not fatal."""
        (outside / "secret_main.py").write_text("x")
        (tree / "escape").symlink_to(outside, target_is_directory=True)

        result = search_files(sandbox, str(tree), "main")

        assert result["success"] is True
        assert result["matches"] == [str(tree / "src" / "main.py")]
        assert [entry["path"] for entry in result["skipped"]] == [str(tree / "escape")]
        assert "outside allowed directories" in result["skipped"][0]["reason"]

    def test_symlinked_directory_not_descended(self, sandbox, tree):
        (tree / "src_link").symlink_to(tree / "src", target_is_directory=True)

        result = search_files(sandbox, str(tree), "main")

        assert result["matches"] == [str(tree / "src" / "main.py")]

    def test_symlinked_directory_name_can_match(self, sandbox, tree):
        (tree / "main_link").symlink_to(tree / "src", target_is_directory=True)

        result = search_files(sandbox, str(tree), "main_link")

        assert result["matches"] == [str(tree / "main_link")]

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX non-root")
    def test_unreadable_directory_is_skipped(self, sandbox, tree):
        locked = tree / "locked"
        locked.mkdir()
        (locked / "main_hidden.py").write_text("x")
        locked.chmod(0o000)
        try:
            result = search_files(sandbox, str(tree), "main")
        finally:
            locked.chmod(0o755)

        assert result["success"] is True
        assert result["matches"] == [str(tree / "src" / "main.py")]
        assert [entry["path"] for entry in result["skipped"]] == [str(locked)]

    def test_missing_root(self, sandbox, root):
        result = search_files(sandbox, str(root / "missing"), "x")

        assert result["success"] is False
        assert result["error_type"] == "file_not_found"
        assert result["pattern"] == "x"

    def test_root_is_a_file(self, sandbox, root):
        (root / "file.txt").write_text("x")

        result = search_files(sandbox, str(root / "file.txt"), "x")

        assert result["success"] is False
        assert result["error_type"] == "io_error"

    def test_outside(self, sandbox, outside):
        result = search_files(sandbox, str(outside), "x")

        assert result["success"] is False
        assert result["error_type"] == "access_denied"


class TestWalkMatches:
    """Test walk_matches function."""

    def test_depth_first_name_order(self, sandbox, root):
        for name in ("b", "a"):
            (root / name).mkdir()
            (root / name / f"{name}_item").write_text("x")

        found = walk_matches(sandbox, str(root), "item")

        assert found["matches"] == [str(root / "a" / "a_item"), str(root / "b" / "b_item")]
        assert found["skipped"] == []
