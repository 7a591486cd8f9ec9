"""Exceptions raised by the sandbox and the patch engine.

Each exception carries the ``ErrorType`` reported to clients, so tool
functions can turn any of them into a result dict with ``error_result``.
Storage failures are not wrapped: they propagate as the builtin ``OSError``
subclasses and are classified by ``error_type_for``.
"""

from typing import Any, Dict, Optional

from .models import ErrorType


class FileOperationError(Exception):
    """Base class for sandbox and edit failures."""

    error_type: ErrorType = ErrorType.IO_ERROR


class AccessDenied(FileOperationError):
    """Path (nominal, real, or parent) lies outside every allowed root."""

    error_type = ErrorType.ACCESS_DENIED


class ParentMissing(FileOperationError):
    """Parent directory of a not-yet-existing file does not exist."""

    error_type = ErrorType.PARENT_MISSING

    def __init__(self, parent: str) -> None:
        super().__init__(f"Parent directory does not exist: {parent}")
        self.parent = parent


class EditError(FileOperationError):
    """Failure while applying one edit of a batch.

    Attributes:
        line_number: Resolved 1-based line of the failing edit, if known
    """

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.line_number = line_number


class PositionUndetermined(EditError):
    error_type = ErrorType.POSITION_UNDETERMINED


class AnchorNotFound(EditError):
    error_type = ErrorType.ANCHOR_NOT_FOUND

    def __init__(self, message: str, anchor: str) -> None:
        super().__init__(message)
        self.anchor = anchor


class ContextMismatch(EditError):
    """Surrounding lines do not contain the expected context."""

    error_type = ErrorType.CONTEXT_MISMATCH

    def __init__(
        self,
        message: str,
        line_number: int,
        expected_before: Optional[str],
        expected_after: Optional[str],
        found_before: str,
        found_after: str,
    ) -> None:
        super().__init__(message, line_number)
        self.expected_before = expected_before
        self.expected_after = expected_after
        self.found_before = found_before
        self.found_after = found_after


class ContentMismatch(EditError):
    """Target span does not match the expected old text."""

    error_type = ErrorType.CONTENT_MISMATCH

    def __init__(self, message: str, line_number: int, expected: str, found: str) -> None:
        super().__init__(message, line_number)
        self.expected = expected
        self.found = found


def error_type_for(exc: BaseException) -> ErrorType:
    """Classify an exception into the ErrorType reported to clients."""
    if isinstance(exc, FileOperationError):
        return exc.error_type
    if isinstance(exc, UnicodeDecodeError):
        return ErrorType.ENCODING_ERROR
    if isinstance(exc, FileNotFoundError):
        return ErrorType.FILE_NOT_FOUND
    if isinstance(exc, FileExistsError):
        return ErrorType.FILE_EXISTS
    if isinstance(exc, PermissionError):
        return ErrorType.PERMISSION_DENIED
    return ErrorType.IO_ERROR


def error_result(exc: BaseException, **fields: Any) -> Dict[str, Any]:
    """Build a failure result dict from an exception.

    Example:
        >>> try:
        ...     sandbox.validate("/etc/passwd")
        ... except AccessDenied as e:
        ...     return error_result(e, path="/etc/passwd")
    """
    if isinstance(exc, OSError) and exc.filename:
        message = f"{exc.strerror or exc}: {exc.filename}"
    elif isinstance(exc, UnicodeDecodeError):
        message = f"Cannot decode file as UTF-8: {exc}"
    else:
        message = str(exc)
    return {
        "success": False,
        **fields,
        "error": message,
        "error_type": error_type_for(exc).value,
    }
