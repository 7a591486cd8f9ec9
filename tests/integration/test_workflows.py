"""Integration tests for multi-step client workflows.

Each test drives the tools the way an MCP client does: through
call_tool, with JSON results, over a real directory tree.
"""

import json

import pytest

from secure_fs_mcp.server import call_tool


async def call(sandbox, name, **arguments):
    result = await call_tool(sandbox, name, arguments)
    return json.loads(result[0].text)


class TestProjectSetupWorkflow:
    """Create, write, list, search and inspect."""

    @pytest.mark.asyncio
    async def test_scaffold_and_explore(self, sandbox, root):
        assert (await call(sandbox, "create_directory", path=str(root / "pkg")))["success"]
        assert (
            await call(
                sandbox,
                "write_file",
                path=str(root / "pkg" / "module.py"),
                content="def run():\n    return 1\n",
            )
        )["success"]
        assert (
            await call(sandbox, "write_file", path=str(root / "README.md"), content="# Demo\n")
        )["success"]

        listing = await call(sandbox, "list_directory", path=str(root))
        assert listing["entries"] == ["[FILE] README.md", "[DIR] pkg"]

        found = await call(sandbox, "search_files", path=str(root), pattern="MODULE")
        assert found["matches"] == [str(root / "pkg" / "module.py")]

        info = await call(sandbox, "get_file_info", path=str(root / "pkg" / "module.py"))
        assert info["info"]["size"] == len("def run():\n    return 1\n")

        both = await call(
            sandbox,
            "read_multiple_files",
            paths=[str(root / "README.md"), str(root / "pkg" / "module.py")],
        )
        assert [entry["success"] for entry in both["files"]] == [True, True]


class TestPreviewThenApplyWorkflow:
    """Dry run first, then apply the same edits."""

    @pytest.mark.asyncio
    async def test_preview_then_apply(self, sandbox, root):
        file = root / "settings.py"
        file.write_text("class Settings:\n    debug = False\n    port = 8000\n")
        edits = [
            {"anchorText": "debug", "oldText": "debug = False", "newText": "debug = True"},
            {"targetLine": 3, "oldText": "port = 8000", "newText": "port = 9000"},
        ]

        preview = await call(
            sandbox,
            "edit_file",
            path=str(file),
            edits=[dict(edit, dryRun=True) for edit in edits],
        )
        assert preview["success"] is True
        assert preview["applied"] is False
        assert [p["line_number"] for p in preview["previews"]] == [3, 2]
        assert file.read_text() == "class Settings:\n    debug = False\n    port = 8000\n"

        applied = await call(sandbox, "edit_file", path=str(file), edits=edits)
        assert applied["success"] is True
        assert applied["edits_applied"] == 2
        assert file.read_text() == "class Settings:\n    debug = True\n    port = 9000\n"

    @pytest.mark.asyncio
    async def test_stale_edit_rejected_after_change(self, sandbox, root):
        """An edit prepared against old content fails once the file changed."""
        file = root / "notes.txt"
        file.write_text("alpha\nbeta\n")
        edit = {"targetLine": 2, "oldText": "beta", "newText": "gamma"}

        assert (await call(sandbox, "edit_file", path=str(file), edits=[edit]))["success"]

        again = await call(sandbox, "edit_file", path=str(file), edits=[edit])
        assert again["success"] is False
        assert again["error_type"] == "content_mismatch"
        assert again["found"] == "gamma"
        assert file.read_text() == "alpha\ngamma\n"


class TestReorganizeWorkflow:
    """Move files around inside the sandbox."""

    @pytest.mark.asyncio
    async def test_move_into_archive(self, sandbox, root):
        (root / "draft.txt").write_text("draft\n")
        assert (await call(sandbox, "create_directory", path=str(root / "archive")))["success"]

        moved = await call(
            sandbox,
            "move_file",
            source=str(root / "draft.txt"),
            destination=str(root / "archive" / "draft.txt"),
        )
        assert moved["success"] is True

        content = await call(sandbox, "read_file", path=str(root / "archive" / "draft.txt"))
        assert content["content"] == "draft\n"

        missing = await call(sandbox, "read_file", path=str(root / "draft.txt"))
        assert missing["error_type"] == "file_not_found"


class TestSandboxBoundaryWorkflow:
    """Every tool refuses to leave the allowed directories."""

    @pytest.mark.asyncio
    async def test_every_tool_denies_outside_paths(self, sandbox, root, outside):
        secret = outside / "secret.txt"
        secret.write_text("secret\n")
        (root / "inside.txt").write_text("x")
        target = str(secret)

        calls = [
            ("read_file", {"path": target}),
            ("write_file", {"path": target, "content": "pwned"}),
            ("edit_file", {"path": target, "edits": [{"targetLine": 1, "oldText": "secret", "newText": "x"}]}),
            ("create_directory", {"path": str(outside / "newdir")}),
            ("list_directory", {"path": str(outside)}),
            ("move_file", {"source": target, "destination": str(root / "stolen.txt")}),
            ("move_file", {"source": str(root / "inside.txt"), "destination": str(outside / "x")}),
            ("search_files", {"path": str(outside), "pattern": "secret"}),
            ("get_file_info", {"path": target}),
        ]
        for name, arguments in calls:
            result = await call(sandbox, name, **arguments)
            assert result["success"] is False, name
            assert result["error_type"] == "access_denied", name

        read_many = await call(sandbox, "read_multiple_files", paths=[target])
        assert read_many["files"][0]["error_type"] == "access_denied"

        assert secret.read_text() == "secret\n"
        assert not (outside / "newdir").exists()
        assert not (root / "stolen.txt").exists()
        assert (root / "inside.txt").exists()

    @pytest.mark.asyncio
    async def test_symlink_planted_inside_root(self, sandbox, root, outside):
        secret = outside / "secret.txt"
        secret.write_text("secret\n")
        (root / "shortcut").symlink_to(outside, target_is_directory=True)

        read = await call(sandbox, "read_file", path=str(root / "shortcut" / "secret.txt"))
        assert read["error_type"] == "access_denied"

        write = await call(
            sandbox, "write_file", path=str(root / "shortcut" / "new.txt"), content="x"
        )
        assert write["error_type"] == "access_denied"
        assert not (outside / "new.txt").exists()

        search = await call(sandbox, "search_files", path=str(root), pattern="secret")
        assert search["success"] is True
        assert search["matches"] == []
        assert [entry["path"] for entry in search["skipped"]] == [str(root / "shortcut")]
