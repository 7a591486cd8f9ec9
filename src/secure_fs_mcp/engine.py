"""Patch engine - apply a batch of line/anchor based edits to file content.

The engine works on an in-memory line buffer. Each edit is located either by
an explicit 1-based line number or by searching for an anchor substring,
optionally checked against the surrounding context and the expected old
text, and then spliced into the buffer with the original indentation.

Batch semantics:
    - Edits are processed from the bottom of the file upwards, so inserting
      or removing lines never shifts the position of a pending edit above.
    - If ANY edit in the batch is a dry run, the batch yields previews only.
      Non-dry edits in such a batch still change the in-memory buffer (later
      previews see their effect) but the final content is discarded and
      nothing is written by the caller.
    - A failing edit aborts the rest of the batch. Edits that already went
      through ``reload_after_apply`` are persisted and stay persisted; the
      ``persisted_edits`` counter tells the caller how many.
"""

import logging
from typing import Callable, List, Optional, Sequence, Union

from .errors import AnchorNotFound, ContentMismatch, ContextMismatch, PositionUndetermined
from .models import EditOperation, EditPreview, InsertionMode
from .text import LF, detect_line_ending, normalize_for_comparison, preserve_indentation, split_lines

logger = logging.getLogger(__name__)

# Persists the given content and returns the content read back from storage
ReloadFn = Callable[[str], str]

EditResult = Union[str, List[EditPreview]]


def find_anchor(lines: Sequence[str], anchor: str) -> Optional[int]:
    """Return the index of the first line containing ``anchor``, or None.

    Both sides are normalized, so indentation and surrounding whitespace do
    not affect the match.
    """
    normalized_anchor = normalize_for_comparison(anchor)
    for index, line in enumerate(lines):
        if normalized_anchor in normalize_for_comparison(line):
            return index
    return None


class PatchEngine:
    """Applies one batch of edits to one file's content.

    An engine instance serves a single batch; create a new one per request.

    Args:
        source: Name used in error messages (usually the file path)
        reload: Callback used by ``reload_after_apply`` edits. It receives the
            current LF-joined buffer, persists it, and returns the content
            read back from storage. Without a callback the buffer is kept in
            memory only.

    Example:
        >>> engine = PatchEngine(source="notes.txt")
        >>> engine.apply("A\\nB\\nC", [EditOperation(target_line=2, old_text="B", new_text="X")])
        'A\\nX\\nC'
    """

    def __init__(self, source: str = "<buffer>", reload: Optional[ReloadFn] = None) -> None:
        self.source = source
        self.reload = reload
        self.persisted_edits = 0

    def apply(self, content: str, edits: Sequence[EditOperation]) -> EditResult:
        """Apply a batch of edits.

        Args:
            content: Current file content
            edits: Edit operations in request order

        Returns:
            The new file content joined with the line ending of ``content``,
            or, when any edit is a dry run, the previews in processing order

        Raises:
            PositionUndetermined: Edit has neither a line nor an anchor, or
                its position lies outside the buffer
            AnchorNotFound: No line contains the anchor
            ContextMismatch: Context differs and verification is enabled
            ContentMismatch: Target span differs from ``old_text``
        """
        line_ending = detect_line_ending(content)
        lines = split_lines(content)
        previews: List[EditPreview] = []

        ordered = sorted(edits, key=lambda e: self._sort_position(lines, e), reverse=True)
        logger.debug("Applying %d edit(s) to %s", len(ordered), self.source)

        for edit in ordered:
            preview = self._apply_one(lines, edit)
            if preview is not None:
                previews.append(preview)
                continue

            if edit.reload_after_apply and self.reload is not None:
                reloaded = self.reload(LF.join(lines))
                self.persisted_edits += 1
                lines[:] = split_lines(reloaded)

        if any(edit.dry_run for edit in edits):
            return previews

        return line_ending.join(lines)

    def _sort_position(self, lines: Sequence[str], edit: EditOperation) -> int:
        # Anchors are located in the initial buffer; a missing anchor sorts last
        if edit.anchor_text:
            index = find_anchor(lines, edit.anchor_text)
            if index is None:
                return -1
            return index + edit.anchor_offset + 1
        if edit.target_line:
            return edit.target_line
        return 0

    def _resolve_position(self, lines: Sequence[str], edit: EditOperation) -> int:
        if edit.anchor_text:
            found = find_anchor(lines, edit.anchor_text)
            if found is None:
                raise AnchorNotFound(
                    f"Edit failed - anchor text not found: {edit.anchor_text} in {self.source}",
                    anchor=edit.anchor_text,
                )
            index = found + edit.anchor_offset
        elif edit.target_line:
            index = edit.target_line - 1
        else:
            raise PositionUndetermined(
                f"Edit failed - no valid position found in {self.source}. "
                "Operation requires either target_line or anchor_text"
            )

        if index < 0 or index > len(lines):
            raise PositionUndetermined(
                f"Edit failed - line {index + 1} is outside {self.source} "
                f"({len(lines)} lines)",
                line_number=index + 1,
            )
        return index

    def _verify_context(self, lines: Sequence[str], index: int, edit: EditOperation) -> bool:
        if not (edit.before_context or edit.after_context):
            return True

        radius = edit.context_radius
        before_text = LF.join(lines[max(0, index - radius) : index])
        after_text = LF.join(lines[index + 1 : index + 1 + radius])

        verified = True
        if edit.before_context and normalize_for_comparison(
            edit.before_context
        ) not in normalize_for_comparison(before_text):
            verified = False
        if edit.after_context and normalize_for_comparison(
            edit.after_context
        ) not in normalize_for_comparison(after_text):
            verified = False

        if not verified and edit.verify_exact_content:
            raise ContextMismatch(
                f"Edit failed - context verification failed in {self.source} at line {index + 1}\n"
                f"Expected before context: {edit.before_context}\n"
                f"Expected after context: {edit.after_context}\n"
                f"Found before context: {before_text}\n"
                f"Found after context: {after_text}\n"
                "Note: Indentation and line endings are normalized during comparison",
                line_number=index + 1,
                expected_before=edit.before_context,
                expected_after=edit.after_context,
                found_before=before_text,
                found_after=after_text,
            )
        return verified

    def _apply_one(self, lines: List[str], edit: EditOperation) -> Optional[EditPreview]:
        """Verify and apply one edit in place, or build its preview."""
        index = self._resolve_position(lines, edit)
        context_verified = self._verify_context(lines, index, edit)

        span_end = index + len(split_lines(edit.old_text))
        existing = LF.join(lines[index:span_end])

        if edit.verify_exact_content and normalize_for_comparison(
            existing
        ) != normalize_for_comparison(edit.old_text):
            raise ContentMismatch(
                f"Edit failed - content mismatch in {self.source} at line {index + 1}\n"
                f"Expected:\n{edit.old_text}\n"
                f"Found:\n{existing}\n"
                "Note: Indentation and line endings are normalized during comparison",
                line_number=index + 1,
                expected=edit.old_text,
                found=existing,
            )

        indented = preserve_indentation(edit.new_text, existing)

        if edit.dry_run:
            return EditPreview(
                original_text=existing,
                new_text=indented,
                line_number=index + 1,
                matched_anchor=edit.anchor_text or None,
                context_verified=context_verified,
            )

        new_lines = split_lines(indented)
        if edit.insertion_mode == InsertionMode.BEFORE:
            lines[index:index] = new_lines
        elif edit.insertion_mode == InsertionMode.AFTER:
            lines[span_end:span_end] = new_lines
        else:
            lines[index:span_end] = new_lines

        logger.debug(
            "Applied %s edit at line %d of %s", edit.insertion_mode.value, index + 1, self.source
        )
        return None


def apply_edits(
    content: str,
    edits: Sequence[EditOperation],
    reload: Optional[ReloadFn] = None,
    source: str = "<buffer>",
) -> EditResult:
    """Apply a batch of edits to ``content`` with a fresh engine.

    See ``PatchEngine.apply`` for semantics and errors.
    """
    return PatchEngine(source=source, reload=reload).apply(content, edits)
