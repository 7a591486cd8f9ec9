"""Text storage helpers.

Files are read and written as UTF-8 with newline translation disabled, so
CRLF and LF line endings reach the patch engine (and the disk) byte-exact.
Writes go to a temporary file in the target directory and are then moved
into place, so readers never observe a half-written file.
"""

import errno
import os
import tempfile
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def read_text(file_path: PathLike) -> str:
    """Read a UTF-8 text file without translating line endings.

    Raises:
        OSError: File cannot be opened or read
        UnicodeDecodeError: File is not valid UTF-8
    """
    with open(file_path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def atomic_file_replace(source: Path, target: Path) -> None:
    """Atomically replace ``target`` with ``source``.

    ``os.replace`` is atomic on POSIX and overwrites an existing target on
    Windows as well.

    Raises:
        OSError: If the replace operation fails
    """
    os.replace(source, target)


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_text(file_path: PathLike, content: str) -> None:
    """Write UTF-8 text atomically, keeping line endings verbatim.

    The permission bits of an existing target are carried over to the new
    file.

    Raises:
        PermissionError: Existing file is not writable
        OSError: Directory not writable, disk full, or replace failed
    """
    path = Path(file_path)
    if path.exists() and not os.access(path, os.W_OK):
        raise PermissionError(errno.EACCES, "File is not writable", str(path))

    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=".edit_tmp_")
    temp_file = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        if path.exists():
            os.chmod(temp_file, path.stat().st_mode & 0o7777)
        else:
            os.chmod(temp_file, _default_file_mode())
        atomic_file_replace(temp_file, path)
    except BaseException:
        # Clean up temp file on error
        if temp_file.exists():
            temp_file.unlink()
        raise
