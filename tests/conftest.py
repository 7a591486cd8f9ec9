"""Shared fixtures: an allowed root inside tmp_path and a sandbox over it."""

import pytest

from secure_fs_mcp.config import load_allowed_roots
from secure_fs_mcp.sandbox import PathSandbox


@pytest.fixture
def root(tmp_path):
    """Allowed directory inside the test's temporary directory."""
    allowed = tmp_path / "allowed"
    allowed.mkdir()
    return allowed.resolve()


@pytest.fixture
def outside(tmp_path):
    """Directory next to the allowed root, outside the sandbox."""
    other = tmp_path / "outside"
    other.mkdir()
    return other.resolve()


@pytest.fixture
def sandbox(root):
    """Case-sensitive sandbox over the allowed root."""
    return PathSandbox(load_allowed_roots([str(root)], case_insensitive=False))
