"""Deterministic one-line descriptions of change groups.

Template::

    Line 4: added 1 line. Preview "b"
    Lines 10-14 (WHERE block): modified 5 lines. Preview "AND x = 1" → "AND x = 2"

The preview comes from the group's first changed line only.  A first line
that is only punctuation or only a trailing alias (``) AS t,``) previews as
empty, in which case the ``Preview`` suffix is omitted.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from review_engine.models.changes import ChangeType

_PUNCTUATION_ONLY_RE = re.compile(r"^[\W_]*$")
_ALIAS_ONLY_RE = re.compile(
    r"^(?:\)\s*(?:AS\s+)?|AS\s+)[A-Za-z_]\w*\s*[,;]?$",
    re.IGNORECASE,
)

_VERBS = {
    ChangeType.ADDITION: "added",
    ChangeType.DELETION: "removed",
    ChangeType.MODIFICATION: "modified",
}


def extract_preview(text: str | None, max_chars: int) -> str:
    """Trimmed, truncated preview of *text*; empty when it says nothing useful."""
    trimmed = (text or "").strip()
    if _PUNCTUATION_ONLY_RE.match(trimmed) or _ALIAS_ONLY_RE.match(trimmed):
        return ""
    if len(trimmed) > max_chars:
        return trimmed[: max_chars - 1].rstrip() + "…"
    return trimmed


def format_line_range(lines: Sequence[int]) -> str:
    start, end = min(lines), max(lines)
    if start == end:
        return f"Line {start}"
    return f"Lines {start}-{end}"


def describe_group(
    change_type: ChangeType,
    lines: Sequence[int],
    *,
    block_label: str | None = None,
    old_preview: str = "",
    new_preview: str = "",
) -> str:
    """Render the description of one change group.

    Parameters
    ----------
    change_type:
        Addition, deletion or modification.
    lines:
        Changed line numbers on the group's anchor side (non-empty).
    block_label:
        Structural block the group was aligned to, if any.
    old_preview, new_preview:
        Already-extracted previews of the removed and added text.
    """
    span = len(lines)
    text = format_line_range(lines)
    if block_label:
        text += f" ({block_label} block)"
    noun = "line" if span == 1 else "lines"
    text += f": {_VERBS[change_type]} {span} {noun}"

    if change_type is ChangeType.MODIFICATION and old_preview and new_preview:
        text += f'. Preview "{old_preview}" → "{new_preview}"'
    else:
        preview = new_preview or old_preview
        if preview:
            text += f'. Preview "{preview}"'
    return text
