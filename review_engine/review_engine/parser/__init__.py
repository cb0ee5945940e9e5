"""SQL text handling: canonicalisation, clause tables and segmentation."""

from review_engine.parser.canonicalizer import (
    CanonicalizerRules,
    CanonicalizerVersion,
    canonicalize_sql,
    compute_canonical_hash,
    get_canonicalizer_version,
    split_lines,
)
from review_engine.parser.segmenter import segment_document

__all__ = [
    "CanonicalizerRules",
    "CanonicalizerVersion",
    "canonicalize_sql",
    "compute_canonical_hash",
    "get_canonicalizer_version",
    "segment_document",
    "split_lines",
]
