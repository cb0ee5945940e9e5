"""Line-level diffing of canonical SQL documents."""

from review_engine.diff.aligned_rows import build_aligned_rows, new_touched_lines
from review_engine.diff.line_diff import align_lines, comparison_key, diff_documents, tally_stats

__all__ = [
    "align_lines",
    "build_aligned_rows",
    "comparison_key",
    "diff_documents",
    "new_touched_lines",
    "tally_stats",
]
