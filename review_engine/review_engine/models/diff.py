"""Diff models for comparing two SQL documents line by line.

These models represent the output of aligning an *old* and a *new* document:
the ordered operation list, the aggregate counts, and the dual-column row
projection used by side-by-side viewers.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DiffKind(str, Enum):
    """Primitive kind of one aligned line.

    "Modification" is deliberately absent: it is derived from an adjacent
    deletion/addition pair by the statistics tally and the grouper.
    """

    UNCHANGED = "unchanged"
    ADDITION = "addition"
    DELETION = "deletion"


class DiffOp(BaseModel):
    """A single aligned line produced by the line aligner."""

    model_config = ConfigDict(frozen=True)

    kind: DiffKind = Field(
        ...,
        description="Whether the line is shared, only new, or only old.",
    )
    content: str = Field(
        ...,
        description="Line text; old-side text for unchanged and deleted lines.",
    )
    old_line: int | None = Field(
        default=None,
        description="1-based line number in the old document.",
    )
    new_line: int | None = Field(
        default=None,
        description="1-based line number in the new document.",
    )
    new_content: str | None = Field(
        default=None,
        description="New-side text of an unchanged line (may differ in case/whitespace).",
    )

    @property
    def old_text(self) -> str | None:
        """Text this op contributes to the old document, if any."""
        if self.kind is DiffKind.ADDITION:
            return None
        return self.content

    @property
    def new_text(self) -> str | None:
        """Text this op contributes to the new document, if any."""
        if self.kind is DiffKind.DELETION:
            return None
        if self.kind is DiffKind.UNCHANGED and self.new_content is not None:
            return self.new_content
        return self.content


class DiffStats(BaseModel):
    """Aggregate counts; an adjacent deletion+addition counts once as a modification."""

    additions: int = Field(default=0, description="Additions not paired with a deletion.")
    deletions: int = Field(default=0, description="Deletions not paired with an addition.")
    modifications: int = Field(default=0, description="Adjacent deletion+addition pairs.")
    unchanged: int = Field(default=0, description="Lines shared by both documents.")

    @property
    def changed(self) -> int:
        return self.additions + self.deletions + self.modifications


class ComparisonResult(BaseModel):
    """The ordered diff of two documents together with its counts."""

    ops: list[DiffOp] = Field(
        default_factory=list,
        description="Aligned operations in forward document order.",
    )
    stats: DiffStats = Field(
        default_factory=DiffStats,
        description="Tally of additions, deletions, modifications and unchanged lines.",
    )

    def old_lines(self) -> list[str]:
        """Reconstruct the old document's lines from the operations."""
        return [op.old_text for op in self.ops if op.old_text is not None]

    def new_lines(self) -> list[str]:
        """Reconstruct the new document's lines from the operations."""
        return [op.new_text for op in self.ops if op.new_text is not None]

    @property
    def has_changes(self) -> bool:
        return any(op.kind is not DiffKind.UNCHANGED for op in self.ops)


class RowKind(str, Enum):
    """Kind of a dual-column display row."""

    UNCHANGED = "unchanged"
    ADDITION = "addition"
    DELETION = "deletion"
    MODIFICATION = "modification"


class RowCell(BaseModel):
    """One side of an aligned row; a blank placeholder has no line number."""

    model_config = ConfigDict(frozen=True)

    line_number: int | None = None
    text: str = ""
    visual_index: int = Field(..., description="1-based row position in the rendered view.")


class AlignedRow(BaseModel):
    """A row of the side-by-side view pairing an old line with a new line."""

    model_config = ConfigDict(frozen=True)

    kind: RowKind
    old: RowCell
    new: RowCell
