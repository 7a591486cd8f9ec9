"""Tool implementations for the Secure Filesystem MCP Server."""
