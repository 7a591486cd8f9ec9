"""CLI entry point for the secure filesystem MCP server.

This module enables running the server as a Python module:
    python -m secure_fs_mcp <allowed-directory> [additional-directories...]

The server will start and communicate via stdio transport.
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from .config import ConfigError, configure_logging, load_config
from .server import main as serve


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secure-fs-mcp",
        description="MCP server exposing file operations restricted to allowed directories.",
    )
    parser.add_argument(
        "directories",
        nargs="*",
        metavar="allowed-directory",
        help="Directory the server may access (with all descendants)",
    )
    case = parser.add_mutually_exclusive_group()
    case.add_argument(
        "--case-insensitive",
        dest="case_insensitive",
        action="store_true",
        default=None,
        help="Compare paths case-insensitively (default on Windows and macOS)",
    )
    case.add_argument(
        "--case-sensitive",
        dest="case_insensitive",
        action="store_false",
        help="Compare paths case-sensitively (default elsewhere)",
    )
    parser.set_defaults(case_insensitive=None)
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: $SECURE_FS_MCP_LOG_LEVEL or WARNING)",
    )
    return parser


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, validate the allowed directories and serve."""
    args = build_parser().parse_args(argv)
    if not args.directories:
        print(
            "Usage: secure-fs-mcp <allowed-directory> [additional-directories...]",
            file=sys.stderr,
        )
        return 1

    try:
        config = load_config(args.directories, args.case_insensitive, args.log_level)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 1

    configure_logging(config.log_level)
    asyncio.run(serve(config))
    return 0


def cli() -> None:
    sys.exit(run())


if __name__ == "__main__":
    cli()
