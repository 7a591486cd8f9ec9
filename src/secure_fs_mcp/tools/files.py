"""Simple file tools.

Each tool validates its path(s) with the sandbox and then performs a single
storage call, returning the result as a dict. Failures are reported as
{"success": False, "error": str, "error_type": str}; nothing is raised to
the caller.
"""

import errno
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from ..errors import FileOperationError, error_result
from ..models import FileInfo
from ..sandbox import PathSandbox
from ..storage import read_text, write_text

_FAILURES = (FileOperationError, OSError, UnicodeDecodeError)


def read_file(sandbox: PathSandbox, path: str) -> Dict[str, Any]:
    """Read the complete content of a UTF-8 text file."""
    try:
        content = read_text(sandbox.validate(path))
    except _FAILURES as e:
        return error_result(e, path=path)
    return {"success": True, "path": path, "content": content}


def read_multiple_files(sandbox: PathSandbox, paths: List[str]) -> Dict[str, Any]:
    """Read several files; a failing file does not stop the others.

    Returns:
        Dict with one entry per requested path in "files" and a combined
        rendering in "text":
            {
                "success": True,
                "files": [
                    {"path": str, "success": True, "content": str},
                    {"path": str, "success": False, "error": str, "error_type": str}
                ],
                "text": str
            }
    """
    files = [read_file(sandbox, path) for path in paths]

    rendered = []
    for entry in files:
        if entry["success"]:
            rendered.append(f"{entry['path']}:\n{entry['content']}\n")
        else:
            rendered.append(f"{entry['path']}: Error - {entry['error']}")

    return {"success": True, "files": files, "text": "\n---\n".join(rendered)}


def write_file(sandbox: PathSandbox, path: str, content: str) -> Dict[str, Any]:
    """Create or overwrite a file. Line endings are written verbatim."""
    try:
        write_text(sandbox.validate(path), content)
    except _FAILURES as e:
        return error_result(e, path=path)
    return {"success": True, "path": path, "message": f"Successfully wrote to {path}"}


def create_directory(sandbox: PathSandbox, path: str) -> Dict[str, Any]:
    """Create a directory; an existing directory is fine.

    The sandbox validates new paths through their parent, so the immediate
    parent must exist or be created by an earlier call.
    """
    try:
        os.makedirs(sandbox.validate(path), exist_ok=True)
    except _FAILURES as e:
        return error_result(e, path=path)
    return {"success": True, "path": path, "message": f"Successfully created directory {path}"}


def list_directory(sandbox: PathSandbox, path: str) -> Dict[str, Any]:
    """List a directory as "[DIR] name" / "[FILE] name" entries."""
    try:
        resolved = sandbox.validate(path)
        with os.scandir(resolved) as it:
            entries = sorted(it, key=lambda entry: entry.name)
            formatted = [
                f"{'[DIR]' if entry.is_dir() else '[FILE]'} {entry.name}" for entry in entries
            ]
    except _FAILURES as e:
        return error_result(e, path=path)
    return {
        "success": True,
        "path": path,
        "entries": formatted,
        "text": "\n".join(formatted),
    }


def move_file(sandbox: PathSandbox, source: str, destination: str) -> Dict[str, Any]:
    """Move or rename a file or directory. Fails if the destination exists."""
    try:
        source_path = sandbox.validate(source)
        destination_path = sandbox.validate(destination)
        if os.path.lexists(destination_path):
            raise FileExistsError(errno.EEXIST, "Destination already exists", destination)
        os.rename(source_path, destination_path)
    except _FAILURES as e:
        return error_result(e, source=source, destination=destination)
    return {
        "success": True,
        "source": source,
        "destination": destination,
        "message": f"Successfully moved {source} to {destination}",
    }


def file_info(path: Path) -> FileInfo:
    """Collect metadata for an existing path.

    Raises:
        OSError: If the path cannot be stat'ed
    """
    stats = path.stat()
    created = getattr(stats, "st_birthtime", stats.st_ctime)
    return FileInfo(
        size=stats.st_size,
        created=datetime.fromtimestamp(created),
        modified=datetime.fromtimestamp(stats.st_mtime),
        accessed=datetime.fromtimestamp(stats.st_atime),
        is_directory=path.is_dir(),
        is_file=path.is_file(),
        permissions=oct(stats.st_mode)[-3:],
    )


def get_file_info(sandbox: PathSandbox, path: str) -> Dict[str, Any]:
    """Return size, timestamps, type flags and permissions of a path."""
    try:
        info = file_info(Path(sandbox.validate(path)))
    except _FAILURES as e:
        return error_result(e, path=path)
    return {"success": True, "path": path, "info": info.model_dump(mode="json")}


def list_allowed_directories(sandbox: PathSandbox) -> Dict[str, Any]:
    """Return the canonical allowed directories."""
    directories = list(sandbox.allowed_directories)
    return {
        "success": True,
        "directories": directories,
        "text": "Allowed directories:\n" + "\n".join(directories),
    }
