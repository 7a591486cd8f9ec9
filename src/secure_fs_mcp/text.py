"""Text normalization helpers used by the patch engine.

These functions make anchor search, context checks and content verification
insensitive to indentation and line-ending style, and keep the formatting of
edited files intact:
    - Line ending detection and conversion (CRLF vs LF)
    - Per-line whitespace normalization for comparison
    - Indentation preservation for replacement text

All functions are pure: no state, no I/O.
"""

import re
from typing import List

CRLF = "\r\n"
LF = "\n"

_LINE_BREAK = re.compile(r"\r?\n")


def split_lines(text: str) -> List[str]:
    """Split text on CRLF or LF line breaks.

    A trailing line break yields a trailing empty line, so joining the result
    with a single line ending restores the original text.

    Example:
        >>> split_lines("a\\r\\nb\\n")
        ['a', 'b', '']
    """
    return _LINE_BREAK.split(text)


def normalize_line_endings(text: str) -> str:
    """Convert all CRLF line breaks to LF."""
    return text.replace(CRLF, LF)


def apply_line_ending(text: str, line_ending: str) -> str:
    """Rewrite the LF line breaks of ``text`` to ``line_ending``."""
    normalized = normalize_line_endings(text)
    if line_ending == CRLF:
        return normalized.replace(LF, CRLF)
    return normalized


def detect_line_ending(text: str) -> str:
    """Return CRLF if the text contains any CRLF sequence, else LF."""
    if CRLF in text:
        return CRLF
    return LF


def normalize_for_comparison(text: str) -> str:
    """Normalize text for whitespace-insensitive comparison.

    Line endings become LF and every line is stripped of leading and trailing
    whitespace. Empty lines are kept, so line structure survives. The
    function is idempotent.

    Example:
        >>> normalize_for_comparison("  def f():\\r\\n\\treturn 1  ")
        'def f():\\nreturn 1'
    """
    lines = normalize_line_endings(text).split(LF)
    return LF.join(line.strip() for line in lines)


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def preserve_indentation(new_text: str, original_segment: str) -> str:
    """Re-indent replacement text to match the segment it replaces.

    The base indentation is the leading whitespace of the first non-blank
    line of ``original_segment``. It is prepended to every non-blank line of
    ``new_text``; blank lines stay as they are. Lines are rejoined with CRLF
    when the original segment used CRLF, otherwise with LF.

    Args:
        new_text: Replacement text as supplied by the caller
        original_segment: Current text of the target span

    Returns:
        Replacement text carrying the original indentation

    Example:
        >>> preserve_indentation("x = 1\\ny = 2", "    a = 0")
        '    x = 1\\n    y = 2'
    """
    base_indent = ""
    for line in split_lines(original_segment):
        if line.strip():
            base_indent = leading_whitespace(line)
            break

    line_ending = detect_line_ending(original_segment)
    return line_ending.join(
        base_indent + line if line.strip() else line for line in split_lines(new_text)
    )
