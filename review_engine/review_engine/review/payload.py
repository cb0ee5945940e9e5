"""Helpers that shape document text for an LLM prompt budget.

Documents are rendered with right-aligned 1-based line numbers so the
explainer can cite lines that match the viewer.  Large documents are cut to
a head and a tail slice with an explicit omission marker, and free-text
questions such as "what changed on new line 40-45?" are parsed into a line
reference the caller can slice out.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_HEAD_LINES = 800
DEFAULT_TAIL_LINES = 800
_SMALL_DOCUMENT_SLACK = 50

_LINE_REFERENCE_RE = re.compile(
    r"\b(?:(old|new)\s*)?line\s+(\d+)(?:\s*[-–]\s*(\d+))?\b",
    re.IGNORECASE,
)
_REDACTIONS = (
    (re.compile(r"(Bearer\s+)[\w.\-]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(api[-_ ]?key\s*[:=]\s*)\w+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"https?://[^\s)]+", re.IGNORECASE), "[redacted-url]"),
)


class DisplayBlock(BaseModel):
    """A numbered, possibly truncated rendering of one document."""

    header: str
    content: str
    included: int = Field(..., description="Number of lines rendered.")
    total: int = Field(..., description="Number of lines in the document.")
    truncated: bool = False


class LineSlice(BaseModel):
    """Numbered lines ``start..end`` (inclusive, clamped) of a document."""

    text: str
    start: int
    end: int
    total: int


class LineReference(BaseModel):
    """A line or line range mentioned in a question."""

    side: Literal["old", "new"] = "new"
    start: int
    end: int | None = None


def _split(text: str) -> list[str]:
    return (text or "").replace("\r\n", "\n").split("\n")


def number_lines(lines: Sequence[str], indices: Iterable[int]) -> str:
    """Render the 0-based *indices* of *lines* as ``"     n | text"`` rows."""
    return "\n".join(
        f"{idx + 1:>6} | {lines[idx] if 0 <= idx < len(lines) else ''}" for idx in indices
    )


def build_display_block(
    label: str,
    text: str,
    head: int = DEFAULT_HEAD_LINES,
    tail: int = DEFAULT_TAIL_LINES,
) -> DisplayBlock:
    """Number every line of *text*, or only its head and tail when it is large.

    The whole document is kept while it has at most ``head + tail + 50``
    lines; beyond that the middle is replaced by an omission marker.
    """
    head = max(0, head)
    tail = max(0, tail)
    lines = _split(text)
    total = len(lines)

    if total <= head + tail + _SMALL_DOCUMENT_SLACK:
        return DisplayBlock(
            header=f"{label} (numbered; total {total} lines)",
            content=number_lines(lines, range(total)),
            included=total,
            total=total,
        )

    tail_start = total - tail
    content = "\n".join(
        [
            number_lines(lines, range(head)),
            f"… ({total - head - tail} lines omitted) …",
            number_lines(lines, range(tail_start, total)),
        ]
    )
    return DisplayBlock(
        header=f"{label} (numbered; total {total} lines; truncated with head {head} & tail {tail})",
        content=content,
        included=head + tail,
        total=total,
        truncated=True,
    )


def slice_lines(text: str, start: int, end: int | None = None) -> LineSlice:
    """Number lines ``start..end`` of *text*, clamped to the document."""
    lines = _split(text)
    total = len(lines)
    first = max(1, start)
    last = min(total, end if end is not None else start)
    return LineSlice(
        text=number_lines(lines, range(first - 1, last)),
        start=first,
        end=last,
        total=total,
    )


def parse_line_reference(question: str) -> LineReference | None:
    """Find ``line 12``, ``old line 5`` or ``new line 7-9`` in *question*.

    The side defaults to ``new``.  A start below 1 or an end before the start
    is not a valid reference.
    """
    match = _LINE_REFERENCE_RE.search(question or "")
    if match is None:
        return None

    side = (match.group(1) or "new").lower()
    start = int(match.group(2))
    end = int(match.group(3)) if match.group(3) else None
    if start < 1:
        return None
    if end is not None and end < start:
        return None
    return LineReference(side=side, start=start, end=end)


def redact_error_message(message: str) -> str:
    """Strip bearer tokens, API keys and URLs from an error before display."""
    for pattern, replacement in _REDACTIONS:
        message = pattern.sub(replacement, message)
    return message
