"""Secure Filesystem MCP Server - sandboxed file access and line-based editing."""

__version__ = "0.2.0"
