"""Unit tests for MCP server registration.

Tests the server initialization, tool registration, and routing
without requiring actual MCP protocol communication.
"""

import json

import pytest
from mcp.server import Server
from mcp.types import CallToolRequest, ListToolsRequest

from secure_fs_mcp.server import (
    SERVER_NAME,
    call_tool,
    create_server,
    dispatch,
    list_tools,
)

TOOL_NAMES = {
    "read_file",
    "read_multiple_files",
    "write_file",
    "edit_file",
    "create_directory",
    "list_directory",
    "move_file",
    "search_files",
    "get_file_info",
    "list_allowed_directories",
}


class TestServerInitialization:
    """Test server initialization and metadata."""

    def test_server_name(self, sandbox):
        server = create_server(sandbox)
        assert isinstance(server, Server)
        assert server.name == SERVER_NAME == "secure-filesystem-server"

    def test_handlers_registered(self, sandbox):
        server = create_server(sandbox)
        assert ListToolsRequest in server.request_handlers
        assert CallToolRequest in server.request_handlers


class TestToolRegistration:
    """Test tool registration and schemas."""

    @pytest.mark.asyncio
    async def test_list_tools_count(self):
        """All 10 tools are registered."""
        tools = await list_tools()
        assert len(tools) == 10

    @pytest.mark.asyncio
    async def test_tool_names(self):
        tools = await list_tools()
        assert {tool.name for tool in tools} == TOOL_NAMES

    @pytest.mark.asyncio
    async def test_all_tools_have_schemas(self):
        """All tools have descriptions and object input schemas."""
        for tool in await list_tools():
            assert tool.description
            schema = tool.inputSchema
            assert schema["type"] == "object"
            assert "properties" in schema
            assert "required" in schema


class TestToolSchemas:
    """Test individual tool schemas."""

    @pytest.mark.asyncio
    async def test_edit_file_schema(self):
        tools = await list_tools()
        edit_tool = next(t for t in tools if t.name == "edit_file")

        schema = edit_tool.inputSchema
        assert set(schema["required"]) == {"path", "edits"}
        item = schema["properties"]["edits"]["items"]
        assert set(item["required"]) == {"old_text", "new_text"}
        assert item["properties"]["insertion_mode"]["enum"] == ["replace", "before", "after"]
        assert item["properties"]["dry_run"]["default"] is False
        assert item["properties"]["verify_exact_content"]["default"] is True
        assert item["properties"]["context_radius"]["default"] == 3
        assert "0 disables" in item["properties"]["context_radius"]["description"]
        assert "ignored" in item["properties"]["context_lines"]["description"]

    @pytest.mark.asyncio
    async def test_move_file_schema(self):
        tools = await list_tools()
        move_tool = next(t for t in tools if t.name == "move_file")
        assert set(move_tool.inputSchema["required"]) == {"source", "destination"}

    @pytest.mark.asyncio
    async def test_list_allowed_directories_takes_no_arguments(self):
        tools = await list_tools()
        tool = next(t for t in tools if t.name == "list_allowed_directories")
        assert tool.inputSchema["properties"] == {}


class TestDispatch:
    """Test argument validation and routing."""

    def test_unknown_tool(self, sandbox):
        with pytest.raises(ValueError, match="Unknown tool: delete_everything"):
            dispatch(sandbox, "delete_everything", {})

    def test_missing_argument(self, sandbox):
        result = dispatch(sandbox, "read_file", {})

        assert result["success"] is False
        assert result["error_type"] == "invalid_arguments"
        assert result["error"].startswith("Invalid arguments for read_file")

    def test_unexpected_argument(self, sandbox, root):
        result = dispatch(sandbox, "read_file", {"path": str(root), "mode": "rb"})
        assert result["error_type"] == "invalid_arguments"

    def test_invalid_edit_operation(self, sandbox, root):
        result = dispatch(
            sandbox,
            "edit_file",
            {"path": str(root / "x"), "edits": [{"target_line": 0, "old_text": "", "new_text": ""}]},
        )
        assert result["error_type"] == "invalid_arguments"

    def test_routes_write_then_read(self, sandbox, root):
        path = str(root / "routed.txt")

        assert dispatch(sandbox, "write_file", {"path": path, "content": "hi"})["success"]
        assert dispatch(sandbox, "read_file", {"path": path})["content"] == "hi"

    def test_routes_edit_with_camel_case(self, sandbox, root):
        file = root / "data.txt"
        file.write_text("A\nB\n")

        result = dispatch(
            sandbox,
            "edit_file",
            {"path": str(file), "edits": [{"targetLine": 2, "oldText": "B", "newText": "C"}]},
        )

        assert result["success"] is True
        assert file.read_text() == "A\nC\n"


class TestCallTool:
    """Test tool rendering through call_tool."""

    @pytest.mark.asyncio
    async def test_call_unknown_tool(self, sandbox):
        with pytest.raises(ValueError, match="Unknown tool"):
            await call_tool(sandbox, "unknown_tool", {})

    @pytest.mark.asyncio
    async def test_returns_text_content(self, sandbox, root):
        (root / "test.txt").write_text("line1\n")

        result = await call_tool(sandbox, "read_file", {"path": str(root / "test.txt")})

        assert isinstance(result, list)
        assert len(result) == 1
        assert result[0].type == "text"
        parsed = json.loads(result[0].text)
        assert parsed["success"] is True
        assert parsed["content"] == "line1\n"

    @pytest.mark.asyncio
    async def test_failure_is_rendered_not_raised(self, sandbox, outside):
        result = await call_tool(sandbox, "read_file", {"path": str(outside / "x")})

        parsed = json.loads(result[0].text)
        assert parsed["success"] is False
        assert parsed["error_type"] == "access_denied"

    @pytest.mark.asyncio
    async def test_none_arguments(self, sandbox, root):
        result = await call_tool(sandbox, "list_allowed_directories", None)

        parsed = json.loads(result[0].text)
        assert parsed["directories"] == [str(root)]
