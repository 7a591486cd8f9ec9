"""Edit file tool - apply line/anchor based edits to a file.

This module implements the edit_file tool which validates the path against
the sandbox, runs the patch engine over the file content and writes the
result back atomically.

CRITICAL: Dry-run batches
    If ANY edit in the batch has dry_run=True, the tool returns previews for
    the dry-run edits and skips the final write, discarding the effect of
    the non-dry edits in the same batch. Non-dry edits with
    reload_after_apply still write the file mid-batch; the preview result
    reports them through "partially_applied" and "persisted_edits".

CRITICAL: Partial persistence
    A failing edit aborts the batch but does not undo edits that were
    already persisted through reload_after_apply. Failure and preview
    results report this through "partially_applied" and "persisted_edits".
"""

import logging
from typing import Any, Dict, List, Sequence

from ..engine import PatchEngine
from ..errors import ContentMismatch, ContextMismatch, EditError, FileOperationError, error_result
from ..models import EditOperation, EditPreview
from ..sandbox import PathSandbox
from ..storage import read_text, write_text

logger = logging.getLogger(__name__)


def render_previews(previews: List[EditPreview]) -> str:
    """Render dry-run previews as one text block."""
    return "Edit preview:\n" + "\n---\n".join(preview.render() for preview in previews)


def _failure(exc: BaseException, path: str, engine: PatchEngine) -> Dict[str, Any]:
    result = error_result(exc, path=path, applied=False)

    if isinstance(exc, EditError) and exc.line_number is not None:
        result["line_number"] = exc.line_number
    if isinstance(exc, ContentMismatch):
        result["expected"] = exc.expected
        result["found"] = exc.found
    elif isinstance(exc, ContextMismatch):
        result["expected"] = {"before": exc.expected_before, "after": exc.expected_after}
        result["found"] = {"before": exc.found_before, "after": exc.found_after}

    result["partially_applied"] = engine.persisted_edits > 0
    result["persisted_edits"] = engine.persisted_edits
    if engine.persisted_edits:
        logger.warning(
            "Edit batch on %s failed after %d persisted edit(s)", path, engine.persisted_edits
        )
    return result


def edit_file(sandbox: PathSandbox, path: str, edits: Sequence[EditOperation]) -> Dict[str, Any]:
    """Apply a batch of edits to a file inside the sandbox.

    Workflow:
        1. Validate the path against the sandbox
        2. Read the current content (line endings preserved)
        3. Run the patch engine; reload_after_apply edits write and re-read
           the file mid-batch
        4. Write the final content atomically, unless the batch is a dry run

    Args:
        sandbox: Sandbox holding the allowed roots
        path: Path of the file to edit, as requested by the client
        edits: Edit operations in request order

    Returns:
        Dict with the following structure on success:
            {
                "success": True,
                "path": str,
                "applied": True,
                "edits_applied": int,
                "message": str
            }

        Dict with the following structure for a dry run:
            {
                "success": True,
                "path": str,
                "applied": False,
                "previews": [
                    {
                        "original_text": str,
                        "new_text": str,
                        "line_number": int,
                        "matched_anchor": Optional[str],
                        "context_verified": bool
                    }
                ],
                "preview": str,
                "partially_applied": bool,
                "persisted_edits": int,
                "message": str
            }

        Dict with the following structure on failure:
            {
                "success": False,
                "path": str,
                "applied": False,
                "error": str,
                "error_type": str,
                "line_number": int,       # edit failures with a position
                "expected": ...,          # context/content mismatches
                "found": ...,             # context/content mismatches
                "partially_applied": bool,
                "persisted_edits": int
            }

    Example:
        >>> edit = EditOperation(anchor_text="LOG_LEVEL", old_text="LOG_LEVEL = 'INFO'",
        ...                      new_text="LOG_LEVEL = 'DEBUG'")
        >>> result = edit_file(sandbox, "config.py", [edit])
        >>> result["success"]
        True
    """
    try:
        resolved = sandbox.validate(path)
        content = read_text(resolved)
    except (FileOperationError, OSError, UnicodeDecodeError) as e:
        return error_result(e, path=path, applied=False)

    def reload(text: str) -> str:
        write_text(resolved, text)
        return read_text(resolved)

    engine = PatchEngine(source=path, reload=reload)
    logger.info("Editing %s with %d edit(s)", path, len(edits))

    try:
        result = engine.apply(content, edits)
        if isinstance(result, list):
            if engine.persisted_edits:
                logger.warning(
                    "Dry run on %s persisted %d reloaded edit(s)", path, engine.persisted_edits
                )
            return {
                "success": True,
                "path": path,
                "applied": False,
                "previews": [preview.model_dump() for preview in result],
                "preview": render_previews(result),
                "partially_applied": engine.persisted_edits > 0,
                "persisted_edits": engine.persisted_edits,
                "message": f"Dry run: {len(result)} edit preview(s) for {path}",
            }
        write_text(resolved, result)
    except (FileOperationError, OSError, UnicodeDecodeError) as e:
        return _failure(e, path, engine)

    return {
        "success": True,
        "path": path,
        "applied": True,
        "edits_applied": len(edits),
        "message": f"Successfully applied edits to {path}",
    }
