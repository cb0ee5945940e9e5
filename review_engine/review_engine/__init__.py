"""SQL change-review engine.

Canonicalise two SQL documents, align them line by line, segment each into
structural blocks and coalesce the edits into described change groups::

    from review_engine import canonicalize_sql, diff_documents, group_changes, segment_document

    old, new = canonicalize_sql(old_sql), canonicalize_sql(new_sql)
    result = diff_documents(old, new)
    groups = group_changes(result.ops, segment_document(old), segment_document(new), 3, 12)
"""

from review_engine.diff.aligned_rows import build_aligned_rows
from review_engine.diff.line_diff import align_lines, diff_documents
from review_engine.grouping.grouper import group_changes
from review_engine.parser.canonicalizer import canonicalize_sql
from review_engine.parser.segmenter import segment_document

__all__ = [
    "align_lines",
    "build_aligned_rows",
    "canonicalize_sql",
    "diff_documents",
    "group_changes",
    "segment_document",
]
