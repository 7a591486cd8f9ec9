"""Path sandbox for the Secure Filesystem MCP Server.

Every path received from a client MUST go through ``PathSandbox.validate``
before any file operation is performed. Validation rejects access that would
escape the allowed roots, including escapes through symlinks and through
not-yet-created files whose parent directory lies elsewhere.
"""

import logging
import os
import sys
from typing import Iterable, Tuple

from .errors import AccessDenied, ParentMissing
from .models import AllowedRoots

logger = logging.getLogger(__name__)


def default_case_insensitive() -> bool:
    """Case policy of the host platform's default filesystems."""
    return sys.platform == "win32" or sys.platform == "darwin"


def expand_home(path: str) -> str:
    """Expand a leading ``~`` or ``~/`` to the user's home directory."""
    if path == "~" or path.startswith("~/") or path.startswith("~" + os.sep):
        return os.path.join(os.path.expanduser("~"), path[2:])
    return path


def absolute_path(path: str) -> str:
    """Expand ``~`` and make a path absolute, collapsing ``.`` and ``..``."""
    return os.path.abspath(expand_home(path))


class PathSandbox:
    """Validates requested paths against an immutable set of allowed roots.

    Args:
        roots: Allowed root directories, canonicalized at startup

    Example:
        >>> sandbox = PathSandbox(AllowedRoots(directories=("/srv/data",)))
        >>> sandbox.validate("/srv/data/notes.txt")
        '/srv/data/notes.txt'
        >>> sandbox.validate("/etc/passwd")
        Traceback (most recent call last):
        ...
        secure_fs_mcp.errors.AccessDenied: Access denied - path outside ...
    """

    def __init__(self, roots: AllowedRoots) -> None:
        self.roots = roots
        self._canonical = tuple(self._canonical_form(d) for d in roots.directories)
        self._nominal = self._canonical + tuple(self._canonical_form(a) for a in roots.aliases)

    @property
    def allowed_directories(self) -> Tuple[str, ...]:
        return self.roots.directories

    @property
    def case_insensitive(self) -> bool:
        return self.roots.case_insensitive

    def _canonical_form(self, path: str) -> str:
        normalized = os.path.normpath(path)
        if self.roots.case_insensitive:
            return os.path.normcase(normalized).lower()
        return normalized

    def _is_within(self, path: str, roots: Iterable[str]) -> bool:
        candidate = self._canonical_form(path)
        for root in roots:
            if candidate == root:
                return True
            prefix = root if root.endswith(os.sep) else root + os.sep
            if candidate.startswith(prefix):
                return True
        return False

    def is_allowed(self, path: str) -> bool:
        """Check whether a real (already resolved) path lies under a root."""
        return self._is_within(path, self._canonical)

    def _denied(self, message: str, path: str) -> AccessDenied:
        logger.info("Access denied for %s: %s", path, message)
        return AccessDenied(
            f"Access denied - {message}: {path} not in {', '.join(self.roots.directories)}"
        )

    def validate(self, requested_path: str) -> str:
        """Validate a requested path and resolve it for use.

        Steps:
            1. Expand ``~`` and make the path absolute (relative to the
               working directory)
            2. Nominal check: the absolute path must lie under a root
            3. Existing path: its real path (symlinks followed) must also lie
               under a root; the real path is returned
            4. New path: the real path of its parent must exist and lie under
               a root; ``<real parent>/<name>`` is returned

        Args:
            requested_path: Path as supplied by the client

        Returns:
            Resolved absolute path, prefixed by one of the allowed roots

        Raises:
            AccessDenied: Path holds a null byte, or its nominal, real, or
                parent path lies outside every root
            ParentMissing: New file whose parent directory does not exist
        """
        if "\x00" in requested_path:
            raise self._denied("path contains a null byte", repr(requested_path))

        absolute = absolute_path(requested_path)

        if not self._is_within(absolute, self._nominal):
            raise self._denied("path outside allowed directories", absolute)

        if os.path.lexists(absolute):
            real_path = os.path.realpath(absolute)
            if not self.is_allowed(real_path):
                raise self._denied("symlink target outside allowed directories", real_path)
            return real_path

        # New file: the parent decides
        parent = os.path.dirname(absolute)
        if not os.path.isdir(parent):
            raise ParentMissing(parent)
        real_parent = os.path.realpath(parent)
        if not self.is_allowed(real_parent):
            raise self._denied("parent directory outside allowed directories", real_parent)
        return os.path.join(real_parent, os.path.basename(absolute))
