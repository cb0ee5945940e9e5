"""Exceptions raised by the review collaborator layer.

The engine functions themselves are total; these errors only originate at
the request boundary (size limits, unusable input).
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base exception for all review-layer errors."""


class DocumentTooLargeError(ReviewError):
    """A document exceeds the configured character or line limit."""

    def __init__(self, side: str, size: int, limit: int, unit: str = "characters") -> None:
        self.side = side
        self.size = size
        self.limit = limit
        self.unit = unit
        super().__init__(f"The {side} document has {size} {unit}; the limit is {limit}")


class EmptyDocumentError(ReviewError):
    """A document required for the operation is blank."""

    def __init__(self, side: str = "new") -> None:
        self.side = side
        super().__init__(f"The {side} document is empty")
