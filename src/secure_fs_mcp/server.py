"""MCP Server for sandboxed file operations.

This module implements the Model Context Protocol (MCP) server that registers
and routes all file tools. Every tool validates its paths against the
allowed directories before touching the filesystem.

Tools provided:
    1. read_file - Read a text file
    2. read_multiple_files - Read several files, failures reported per file
    3. write_file - Create or overwrite a file
    4. edit_file - Apply line/anchor based edits (supports dry_run)
    5. create_directory - Create a directory
    6. list_directory - List entries with [DIR]/[FILE] markers
    7. move_file - Move or rename a file or directory
    8. search_files - Recursive case-insensitive name search
    9. get_file_info - File metadata
    10. list_allowed_directories - Show the sandbox roots
"""

import json
import logging
from typing import Any, Dict

from mcp.server import Server
from mcp.types import TextContent, Tool
from pydantic import ValidationError

from .config import ServerConfig
from .models import (
    EditFileArgs,
    ErrorType,
    MoveFileArgs,
    PathArgs,
    ReadMultipleFilesArgs,
    SearchFilesArgs,
    WriteFileArgs,
)
from .sandbox import PathSandbox
from .tools import edit, files, search

SERVER_NAME = "secure-filesystem-server"

logger = logging.getLogger(__name__)


def _path_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {"path": {"type": "string", "description": description}},
        "required": ["path"],
    }


EDIT_OPERATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "target_line": {
            "type": "integer",
            "minimum": 1,
            "description": "1-based line number of the target span",
        },
        "anchor_text": {
            "type": "string",
            "description": "Text locating the target line by content search "
            "(takes precedence over target_line)",
        },
        "anchor_offset": {
            "type": "integer",
            "description": "Line offset applied after the anchor match",
            "default": 0,
        },
        "old_text": {
            "type": "string",
            "description": "Expected current text of the target span",
        },
        "new_text": {"type": "string", "description": "Replacement text"},
        "insertion_mode": {
            "type": "string",
            "enum": ["replace", "before", "after"],
            "default": "replace",
        },
        "verify_exact_content": {
            "type": "boolean",
            "description": "Fail when content or context does not match (default: true)",
            "default": True,
        },
        "before_context": {"type": "string", "description": "Text expected above the target"},
        "after_context": {"type": "string", "description": "Text expected below the target"},
        "context_radius": {
            "type": "integer",
            "minimum": 0,
            "description": "Lines inspected on each side for context checks; "
            "0 disables the window, so any non-empty context then fails",
            "default": 3,
        },
        "reload_after_apply": {
            "type": "boolean",
            "description": "Write and re-read the file after this edit (default: false)",
            "default": False,
        },
        "dry_run": {
            "type": "boolean",
            "description": "Preview without modifying (default: false)",
            "default": False,
        },
        "context_lines": {
            "type": "integer",
            "description": "Accepted for older clients and ignored; use context_radius",
        },
    },
    "required": ["old_text", "new_text"],
}


async def list_tools() -> list[Tool]:
    """List all tools with their schemas.

    Returns:
        List of Tool objects with proper input schemas
    """
    return [
        Tool(
            name="read_file",
            description="Read the complete contents of a file from the file system. "
            "Only works within allowed directories.",
            inputSchema=_path_schema("Path to the file to read"),
        ),
        Tool(
            name="read_multiple_files",
            description="Read the contents of multiple files at once. Failed reads for "
            "individual files are reported inline and don't stop the entire operation. "
            "Only works within allowed directories.",
            inputSchema={
                "type": "object",
                "properties": {
                    "paths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Paths of the files to read",
                    },
                },
                "required": ["paths"],
            },
        ),
        Tool(
            name="write_file",
            description="Create a new file or completely overwrite an existing file. "
            "Only works within allowed directories.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Path to the file to write"},
                    "content": {"type": "string", "description": "Full file content"},
                },
                "required": ["path", "content"],
            },
        ),
        Tool(
            name="edit_file",
            description="""Make selective edits to a text file with pattern matching and validation.

Edit modes:
1. Line-based: target_line gives the exact position
2. Anchor-based: anchor_text locates the line by content (plus anchor_offset)
3. Context-aware: before_context/after_context verify the surroundings

FEATURES:
- Dry run: any edit with dry_run: true turns the whole call into a preview and skips the
  final write; reload_after_apply edits in the same batch still write and are reported
  in persisted_edits
- Insertion modes: 'replace', 'before', 'after'
- Indentation and line endings (LF/CRLF) of the file are preserved
- reload_after_apply writes and re-reads the file before the next edit; such writes are
  NOT rolled back if a later edit fails

Only works within allowed directories.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Path to the file to edit"},
                    "edits": {
                        "type": "array",
                        "items": EDIT_OPERATION_SCHEMA,
                        "description": "Edit operations, applied from the bottom of the file up",
                    },
                },
                "required": ["path", "edits"],
            },
        ),
        Tool(
            name="create_directory",
            description="Create a new directory or ensure a directory exists. "
            "Only works within allowed directories.",
            inputSchema=_path_schema("Path of the directory to create"),
        ),
        Tool(
            name="list_directory",
            description="List all files and directories in a path, prefixed with "
            "[FILE] or [DIR]. Only works within allowed directories.",
            inputSchema=_path_schema("Path of the directory to list"),
        ),
        Tool(
            name="move_file",
            description="Move or rename files and directories. Fails if the destination "
            "exists. Both source and destination must be within allowed directories.",
            inputSchema={
                "type": "object",
                "properties": {
                    "source": {"type": "string", "description": "Path to move"},
                    "destination": {"type": "string", "description": "New path"},
                },
                "required": ["source", "destination"],
            },
        ),
        Tool(
            name="search_files",
            description="Recursively search for files and directories whose name contains "
            "a pattern (case-insensitive). Entries that cannot be accessed are listed as "
            "skipped. Only searches within allowed directories.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Directory to search from"},
                    "pattern": {"type": "string", "description": "Substring of entry names"},
                },
                "required": ["path", "pattern"],
            },
        ),
        Tool(
            name="get_file_info",
            description="Retrieve size, timestamps, type and permissions of a file or "
            "directory. Only works within allowed directories.",
            inputSchema=_path_schema("Path to inspect"),
        ),
        Tool(
            name="list_allowed_directories",
            description="Returns the list of directories that this server is allowed to access.",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
    ]


def dispatch(sandbox: PathSandbox, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Validate the arguments of a tool call and run the tool.

    Args:
        sandbox: Sandbox every path is validated against
        name: Name of the tool to call
        arguments: Dictionary of tool arguments

    Returns:
        Tool result dict

    Raises:
        ValueError: If tool name is unknown
    """
    try:
        if name == "read_file":
            args = PathArgs.model_validate(arguments)
            return files.read_file(sandbox, args.path)
        if name == "read_multiple_files":
            multi = ReadMultipleFilesArgs.model_validate(arguments)
            return files.read_multiple_files(sandbox, multi.paths)
        if name == "write_file":
            write = WriteFileArgs.model_validate(arguments)
            return files.write_file(sandbox, write.path, write.content)
        if name == "edit_file":
            edit_args = EditFileArgs.model_validate(arguments)
            return edit.edit_file(sandbox, edit_args.path, edit_args.edits)
        if name == "create_directory":
            args = PathArgs.model_validate(arguments)
            return files.create_directory(sandbox, args.path)
        if name == "list_directory":
            args = PathArgs.model_validate(arguments)
            return files.list_directory(sandbox, args.path)
        if name == "move_file":
            move = MoveFileArgs.model_validate(arguments)
            return files.move_file(sandbox, move.source, move.destination)
        if name == "search_files":
            query = SearchFilesArgs.model_validate(arguments)
            return search.search_files(sandbox, query.path, query.pattern)
        if name == "get_file_info":
            args = PathArgs.model_validate(arguments)
            return files.get_file_info(sandbox, args.path)
        if name == "list_allowed_directories":
            return files.list_allowed_directories(sandbox)
    except ValidationError as e:
        return {
            "success": False,
            "error": f"Invalid arguments for {name}: {e}",
            "error_type": ErrorType.INVALID_ARGUMENTS.value,
        }

    raise ValueError(f"Unknown tool: {name}")


async def call_tool(
    sandbox: PathSandbox, name: str, arguments: Dict[str, Any]
) -> list[TextContent]:
    """Route a tool call and render the result.

    Returns:
        List containing a single TextContent with JSON-formatted result

    Raises:
        ValueError: If tool name is unknown
    """
    result = dispatch(sandbox, name, arguments or {})
    if not result.get("success"):
        logger.debug("%s failed: %s", name, result.get("error"))
    return [TextContent(type="text", text=json.dumps(result, indent=2))]


def create_server(sandbox: PathSandbox) -> Server:
    """Create an MCP server whose tools are confined to the sandbox."""
    server = Server(SERVER_NAME)

    @server.list_tools()  # type: ignore[misc,no-untyped-call]
    async def _list_tools() -> list[Tool]:
        return await list_tools()

    @server.call_tool()  # type: ignore[misc]
    async def _call_tool(name: str, arguments: Dict[str, Any]) -> list[TextContent]:
        return await call_tool(sandbox, name, arguments)

    return server


async def main(config: ServerConfig) -> None:
    """Run the MCP server using stdio transport.

    Args:
        config: Startup configuration holding the allowed roots
    """
    from mcp.server.stdio import stdio_server

    sandbox = PathSandbox(config.allowed_roots)
    server = create_server(sandbox)

    logger.info("Secure MCP Filesystem Server running on stdio")
    logger.info("Allowed directories: %s", ", ".join(sandbox.allowed_directories))

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
