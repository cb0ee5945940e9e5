"""Change grouping: coalescing diff ops into described, structure-aware groups."""

from review_engine.grouping.describe import describe_group, extract_preview
from review_engine.grouping.grouper import (
    ChangeUnit,
    collect_units,
    detect_runs,
    find_dominant_block,
    group_changes,
)

__all__ = [
    "ChangeUnit",
    "collect_units",
    "describe_group",
    "detect_runs",
    "extract_preview",
    "find_dominant_block",
    "group_changes",
]
