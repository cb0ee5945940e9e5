"""Request-level collaborators around the engine: pipeline, cache and prompt payloads."""

from review_engine.review.cache import ComparisonCache
from review_engine.review.errors import DocumentTooLargeError, EmptyDocumentError, ReviewError
from review_engine.review.payload import (
    DisplayBlock,
    LineReference,
    LineSlice,
    build_display_block,
    number_lines,
    parse_line_reference,
    redact_error_message,
    slice_lines,
)
from review_engine.review.pipeline import merge_explanations, paginate_groups, review_documents

__all__ = [
    "ComparisonCache",
    "DisplayBlock",
    "DocumentTooLargeError",
    "EmptyDocumentError",
    "LineReference",
    "LineSlice",
    "ReviewError",
    "build_display_block",
    "merge_explanations",
    "number_lines",
    "paginate_groups",
    "parse_line_reference",
    "redact_error_message",
    "review_documents",
    "slice_lines",
]
