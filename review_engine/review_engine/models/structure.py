"""Structural models describing the logical regions of one SQL document."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class BlockKind(str, enum.Enum):
    """Kind of structural region the segmenter can recognise."""

    CTE = "CTE"
    SUBQUERY = "SUBQUERY"
    PROCEDURAL_BLOCK = "PROCEDURAL_BLOCK"
    CLAUSE = "CLAUSE"


@dataclass(frozen=True, slots=True)
class Block:
    """An inclusive, 1-based line range within a single document."""

    kind: BlockKind
    start_line: int
    end_line: int
    label: str

    @property
    def span(self) -> int:
        return self.end_line - self.start_line + 1

    def covers(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass(frozen=True, slots=True)
class Segmentation:
    """Result of segmenting one document.

    ``blocks`` keeps every detected region in registration order.  ``_owners``
    maps each line to the index of the first registered block covering it, so
    :meth:`block_at` answers "which block directly covers line N" with
    first-registered-wins semantics while later, overlapping blocks remain
    visible for coverage voting.
    """

    line_count: int
    boundaries: frozenset[int]
    labels: dict[int, str]
    blocks: tuple[Block, ...]
    _owners: tuple[int | None, ...] = field(default=(), repr=False)

    def block_at(self, line: int) -> Block | None:
        """Return the block owning *line*, or ``None`` outside the document."""
        if line < 1 or line > len(self._owners):
            return None
        owner = self._owners[line - 1]
        return None if owner is None else self.blocks[owner]

    def is_boundary(self, line: int) -> bool:
        return line in self.boundaries

    def label_at(self, line: int) -> str | None:
        """Clause label registered for a boundary line, if any."""
        return self.labels.get(line)

    def blocks_of(self, kind: BlockKind) -> list[Block]:
        return [b for b in self.blocks if b.kind is kind]
