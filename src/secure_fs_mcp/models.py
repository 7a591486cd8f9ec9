"""Data models for the Secure Filesystem MCP Server.

This module defines Pydantic models used throughout the server for tool
argument validation, edit operations, previews, and sandbox configuration.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    """Standard error types reported in tool results.

    Sandbox Errors (2):
        ACCESS_DENIED: Nominal, real, or parent path outside all allowed roots
        PARENT_MISSING: Parent directory of a new file does not exist

    Edit Errors (4):
        POSITION_UNDETERMINED: Neither a line nor an anchor locates the edit
        ANCHOR_NOT_FOUND: No line contains the anchor text
        CONTEXT_MISMATCH: Surrounding text differs from the expected context
        CONTENT_MISMATCH: Target span differs from the expected old text

    Storage Errors (5):
        FILE_NOT_FOUND: File or directory doesn't exist
        FILE_EXISTS: Destination already exists
        PERMISSION_DENIED: Cannot read/write file
        ENCODING_ERROR: File is not valid UTF-8
        IO_ERROR: General I/O error

    Request Errors (1):
        INVALID_ARGUMENTS: Tool arguments failed validation
    """

    # Sandbox errors
    ACCESS_DENIED = "access_denied"
    PARENT_MISSING = "parent_missing"

    # Edit errors
    POSITION_UNDETERMINED = "position_undetermined"
    ANCHOR_NOT_FOUND = "anchor_not_found"
    CONTEXT_MISMATCH = "context_mismatch"
    CONTENT_MISMATCH = "content_mismatch"

    # Storage errors
    FILE_NOT_FOUND = "file_not_found"
    FILE_EXISTS = "file_exists"
    PERMISSION_DENIED = "permission_denied"
    ENCODING_ERROR = "encoding_error"
    IO_ERROR = "io_error"

    # Request errors
    INVALID_ARGUMENTS = "invalid_arguments"


class InsertionMode(str, Enum):
    """Where the new text of an edit lands relative to its target span."""

    REPLACE = "replace"
    BEFORE = "before"
    AFTER = "after"


class AllowedRoots(BaseModel):
    """Immutable set of directories the sandbox permits access under.

    Attributes:
        directories: Canonical (real path) root directories, at least one
        aliases: Absolute spellings of the roots as supplied at startup,
            accepted by the nominal check only
        case_insensitive: Compare paths case-insensitively
    """

    model_config = ConfigDict(frozen=True)

    directories: Tuple[str, ...] = Field(..., min_length=1)
    aliases: Tuple[str, ...] = ()
    case_insensitive: bool = False


class EditOperation(BaseModel):
    """One requested text transformation within an edit batch.

    Field names are snake_case; the camelCase spellings used by MCP clients
    (and the legacy names ``startLine``, ``findAnchor``, ``insertMode``,
    ``verifyState`` and ``readBeforeEdit``) are accepted as well.

    Attributes:
        target_line: 1-based line index of the target span
        anchor_text: Substring locating the target line by content search
        anchor_offset: Line offset applied after an anchor match
        old_text: Expected text of the target span (sets the span length)
        new_text: Replacement text
        insertion_mode: replace, before or after
        verify_exact_content: Fail on content/context mismatch
        before_context: Text expected just above the target
        after_context: Text expected just below the target
        context_radius: Number of lines inspected on each side
        reload_after_apply: Persist and re-read the file after this edit
        dry_run: Preview only
        context_lines: Legacy client field, accepted and ignored
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    target_line: Optional[int] = Field(
        default=None,
        ge=1,
        validation_alias=AliasChoices("target_line", "targetLine", "startLine"),
    )
    anchor_text: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("anchor_text", "anchorText", "findAnchor"),
    )
    anchor_offset: int = Field(
        default=0, validation_alias=AliasChoices("anchor_offset", "anchorOffset")
    )
    old_text: str = Field(..., validation_alias=AliasChoices("old_text", "oldText"))
    new_text: str = Field(..., validation_alias=AliasChoices("new_text", "newText"))
    insertion_mode: InsertionMode = Field(
        default=InsertionMode.REPLACE,
        validation_alias=AliasChoices("insertion_mode", "insertionMode", "insertMode"),
    )
    verify_exact_content: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "verify_exact_content", "verifyExactContent", "verifyState"
        ),
    )
    before_context: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("before_context", "beforeContext")
    )
    after_context: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("after_context", "afterContext")
    )
    context_radius: int = Field(
        default=3, ge=0, validation_alias=AliasChoices("context_radius", "contextRadius")
    )
    reload_after_apply: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "reload_after_apply", "reloadAfterApply", "readBeforeEdit"
        ),
    )
    dry_run: bool = Field(default=False, validation_alias=AliasChoices("dry_run", "dryRun"))
    # Accepted from older clients; has no effect
    context_lines: Optional[int] = Field(
        default=None,
        exclude=True,
        validation_alias=AliasChoices("context_lines", "contextLines"),
    )


class EditPreview(BaseModel):
    """Result of a dry-run edit. Never reflects persisted state.

    Attributes:
        original_text: Current text of the target span
        new_text: Proposed text after indentation preservation
        line_number: Resolved 1-based line number
        matched_anchor: Anchor used to locate the edit, if any
        context_verified: Whether the surrounding context matched
    """

    original_text: str
    new_text: str
    line_number: int = Field(..., ge=1)
    matched_anchor: Optional[str] = None
    context_verified: bool = True

    def render(self) -> str:
        """Render the preview as a human-readable block."""
        lines = [f"Line {self.line_number}:"]
        if self.matched_anchor:
            lines.append(f"Matched anchor: {self.matched_anchor}")
        lines.append(f"Context verified: {str(self.context_verified).lower()}")
        lines.append(f"Original:\n{self.original_text}")
        lines.append(f"New:\n{self.new_text}")
        return "\n".join(lines) + "\n"


class FileInfo(BaseModel):
    """Metadata about a file or directory."""

    size: int = Field(..., ge=0)
    created: datetime
    modified: datetime
    accessed: datetime
    is_directory: bool
    is_file: bool
    permissions: str = Field(..., description="Last three octal digits of the mode")


class SkippedEntry(BaseModel):
    """An entry the recursive search could not visit."""

    path: str
    reason: str


# Tool argument models


class PathArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str


class ReadMultipleFilesArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    paths: List[str]


class WriteFileArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str
    content: str


class EditFileArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str
    edits: List[EditOperation]


class MoveFileArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: str
    destination: str


class SearchFilesArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str
    pattern: str
