"""Change-group models: the grouper's output and its tunables."""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MIN_RUN_FLOOR = 2
DEFAULT_DOMINANT_THRESHOLD = 0.6
PREVIEW_FLOOR = 8


class ChangeType(str, Enum):
    """Classification of a coalesced change."""

    ADDITION = "addition"
    MODIFICATION = "modification"
    DELETION = "deletion"


class Side(str, Enum):
    """Which document a change group's line numbers refer to."""

    OLD = "old"
    NEW = "new"
    BOTH = "both"


class ChangeGroup(BaseModel):
    """A (possibly multi-line) coalesced change, ready for explanation."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(
        default=0,
        description="Position in the ordered group list; explanations merge back by it.",
    )
    type: ChangeType = Field(..., description="Addition, deletion or modification.")
    side: Side = Field(
        ...,
        description="old for deletions, new for additions, both for modifications.",
    )
    anchor_line: int = Field(
        ...,
        description="First line of the group on the anchor side (new side for modifications).",
    )
    span: int = Field(..., description="Number of changed lines covered by the group.")
    lines: list[int] = Field(
        default_factory=list,
        description="Changed line numbers on the anchor side.",
    )
    old_lines: list[int] = Field(
        default_factory=list,
        description="Old-side line numbers replaced by a modification group.",
    )
    block_label: str | None = Field(
        default=None,
        description="Label of the structural block the group was aligned to, if any.",
    )
    description: str = Field(..., description="Deterministic human-readable summary.")

    @property
    def end_line(self) -> int:
        return self.lines[-1] if self.lines else self.anchor_line


class GroupingParams(BaseModel):
    """Tunables for the change grouper.

    Out-of-range values are a caller-side precondition violation; rather
    than raising, :meth:`clamped` pulls them back to the nearest sane value.
    """

    min_run_length: int = Field(default=3, description="Shortest run that is merged into groups.")
    max_group_lines: int = Field(default=12, description="Upper bound on lines per emitted group.")
    gap_join: int = Field(default=0, description="Tolerated line gap inside one run.")
    dominant_threshold: float = Field(
        default=DEFAULT_DOMINANT_THRESHOLD,
        description="Share of a run one block must cover to anchor the run to it.",
    )
    preview_max_chars: int = Field(default=60, description="Preview truncation length.")

    def clamped(self) -> GroupingParams:
        """Return a copy with every tunable inside its valid range."""
        min_run = max(MIN_RUN_FLOOR, self.min_run_length)
        max_lines = max(min_run, self.max_group_lines)
        gap = max(0, self.gap_join)
        threshold = self.dominant_threshold
        if not 0.0 < threshold <= 1.0:
            threshold = DEFAULT_DOMINANT_THRESHOLD
        preview = max(PREVIEW_FLOOR, self.preview_max_chars)

        fixed = GroupingParams(
            min_run_length=min_run,
            max_group_lines=max_lines,
            gap_join=gap,
            dominant_threshold=threshold,
            preview_max_chars=preview,
        )
        if fixed != self:
            logger.warning(
                "Clamped grouping parameters %s -> %s",
                self.model_dump(),
                fixed.model_dump(),
            )
        return fixed
