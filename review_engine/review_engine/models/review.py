"""Request-level models produced by the review pipeline.

A :class:`ReviewReport` bundles everything one comparison request computed:
canonical texts, the line diff, and the (possibly trimmed) change groups.
The explainer-facing models page through the groups and join returned
explanations back onto them by index.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from review_engine.models.changes import ChangeGroup
from review_engine.models.diff import ComparisonResult

NO_EXPLANATION = "No analysis was produced."


class ReviewReport(BaseModel):
    """Full result of comparing one old/new document pair."""

    canonical_old: str = Field(..., description="Canonical form of the old document.")
    canonical_new: str = Field(..., description="Canonical form of the new document.")
    comparison: ComparisonResult = Field(..., description="Line diff of the canonical documents.")
    groups: list[ChangeGroup] = Field(
        default_factory=list,
        description="Change groups, trimmed to the configured cap.",
    )
    total_groups: int = Field(default=0, description="Group count before trimming.")
    truncated: bool = Field(default=False, description="True when groups were trimmed.")
    cache_key: str = Field(default="", description="Content hash of the canonical pair and parameters.")
    canonicalizer_version: str = Field(default="v1", description="Rule-set used for canonicalisation.")
    cached: bool = Field(default=False, description="True when served from the result cache.")


class ChangePage(BaseModel):
    """One batch of change groups handed to an explainer."""

    items: list[ChangeGroup] = Field(default_factory=list)
    next_cursor: int | None = Field(default=None, description="Cursor of the next page, if any.")
    total: int = Field(default=0)


class ExplainedChange(BaseModel):
    """A change group joined with the explainer's natural-language output."""

    group: ChangeGroup
    explanation: str = NO_EXPLANATION
