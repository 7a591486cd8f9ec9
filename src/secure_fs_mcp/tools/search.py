"""Search files tool - recursive, case-insensitive name search.

The walk never aborts because of a single entry: entries that fail sandbox
validation or cannot be read are recorded in the "skipped" list of the
result and the walk continues with the next entry. Symlinked directories
are reported as matches but not descended into.
"""

import errno
import logging
import os
from typing import Any, Dict, List

from ..errors import FileOperationError, error_result
from ..models import SkippedEntry
from ..sandbox import PathSandbox

logger = logging.getLogger(__name__)


def walk_matches(sandbox: PathSandbox, root: str, pattern: str) -> Dict[str, List[Any]]:
    """Collect entries under ``root`` whose name contains ``pattern``.

    Args:
        sandbox: Sandbox every visited entry is validated against
        root: Already validated directory to start from
        pattern: Substring to look for, compared case-insensitively

    Returns:
        {"matches": [str, ...], "skipped": [SkippedEntry, ...]}
    """
    needle = pattern.lower()
    matches: List[str] = []
    skipped: List[SkippedEntry] = []
    pending = [root]

    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)
            skipped.append(SkippedEntry(path=current, reason=str(e)))
            continue

        subdirectories = []
        for entry in entries:
            try:
                sandbox.validate(entry.path)
                is_directory = entry.is_dir(follow_symlinks=False)
            except (FileOperationError, OSError) as e:
                logger.debug("Skipping %s: %s", entry.path, e)
                skipped.append(SkippedEntry(path=entry.path, reason=str(e)))
                continue

            if needle in entry.name.lower():
                matches.append(entry.path)
            if is_directory:
                subdirectories.append(entry.path)

        # Depth-first, visiting siblings in name order
        pending.extend(reversed(subdirectories))

    return {"matches": matches, "skipped": skipped}


def search_files(sandbox: PathSandbox, path: str, pattern: str) -> Dict[str, Any]:
    """Recursively search for files and directories matching a pattern.

    Args:
        sandbox: Sandbox holding the allowed roots
        path: Directory to start from
        pattern: Case-insensitive substring of the entry name

    Returns:
        Dict with the following structure on success:
            {
                "success": True,
                "path": str,
                "pattern": str,
                "matches": [str, ...],
                "skipped": [{"path": str, "reason": str}, ...],
                "message": str
            }
    """
    try:
        root = sandbox.validate(path)
    except FileOperationError as e:
        return error_result(e, path=path, pattern=pattern)

    if not os.path.exists(root):
        missing = FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return error_result(missing, path=path, pattern=pattern)
    if not os.path.isdir(root):
        not_dir = NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
        return error_result(not_dir, path=path, pattern=pattern)

    found = walk_matches(sandbox, root, pattern)
    matches = found["matches"]
    return {
        "success": True,
        "path": path,
        "pattern": pattern,
        "matches": matches,
        "skipped": [entry.model_dump() for entry in found["skipped"]],
        "message": "\n".join(matches) if matches else "No matches found",
    }
