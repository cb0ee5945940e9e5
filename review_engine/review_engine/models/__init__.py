"""Domain models for the review engine."""

from review_engine.models.changes import ChangeGroup, ChangeType, GroupingParams, Side
from review_engine.models.diff import (
    AlignedRow,
    ComparisonResult,
    DiffKind,
    DiffOp,
    DiffStats,
    RowCell,
    RowKind,
)
from review_engine.models.review import ChangePage, ExplainedChange, ReviewReport
from review_engine.models.structure import Block, BlockKind, Segmentation

__all__ = [
    "AlignedRow",
    "Block",
    "BlockKind",
    "ChangeGroup",
    "ChangePage",
    "ChangeType",
    "ComparisonResult",
    "DiffKind",
    "DiffOp",
    "DiffStats",
    "ExplainedChange",
    "GroupingParams",
    "ReviewReport",
    "RowCell",
    "RowKind",
    "Segmentation",
    "Side",
]
