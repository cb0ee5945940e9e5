"""Heuristic structural segmentation of a canonical SQL document.

The segmenter is a line classifier, not a grammar.  It runs a fixed sequence
of independent passes over the same document and merges their output:

1. clause labelling -- the first matching clause-start pattern labels a line;
   blank lines are unlabelled boundaries,
2. CTE bodies -- ``name AS (`` inside a ``WITH`` up to the matching ``)``,
3. subqueries -- parenthesised regions containing ``SELECT``,
4. procedural blocks -- ``BEGIN`` ... ``END`` with nesting,
5. clause fallback -- each labelled line opens a block that runs to the line
   before the next labelled line.

Blocks are registered in pass order and the first block registered for a
line owns it for :meth:`Segmentation.block_at`.  No pass raises: unmatched
parentheses and ``BEGIN`` simply extend to the end of the document.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from review_engine.models.structure import Block, BlockKind, Segmentation
from review_engine.parser.canonicalizer import split_lines
from review_engine.parser.keywords import (
    SEGMENT_CLAUSE_PATTERNS,
    ClausePattern,
    compile_clause_patterns,
)
from review_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

CTE_LABEL = "CTE"
SUBQUERY_LABEL = "SUBQUERY"
PROCEDURAL_LABEL = "BEGIN…END"
PREAMBLE_LABEL = "PREAMBLE"

_STRING_RE = re.compile(r"'(?:''|[^'])*'?|\"(?:\"\"|[^\"])*\"?")
_INLINE_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/")
_WITH_RE = re.compile(r"^WITH\b", re.IGNORECASE)
_SELECT_RE = re.compile(r"^SELECT\b", re.IGNORECASE)
_CTE_OPEN_RE = re.compile(r"\bAS\s*\($", re.IGNORECASE)
_BEGIN_RE = re.compile(r"^BEGIN\b", re.IGNORECASE)
_END_RE = re.compile(r"^END\b(?!\s+(?:IF|LOOP|CASE)\b)", re.IGNORECASE)
_SELECT_WORD_RE = re.compile(r"SELECT\b", re.IGNORECASE)


def _code_only(line: str) -> str:
    """Strip string literals, quoted identifiers and comments from a single line."""
    code = _STRING_RE.sub(lambda m: m.group(0)[0] * 2, line)
    code = _INLINE_BLOCK_COMMENT_RE.sub(" ", code)
    cut = code.find("--")
    if cut != -1:
        code = code[:cut]
    return code


@dataclass(frozen=True)
class _DocumentView:
    """Per-document inputs shared by every pass."""

    lines: tuple[str, ...]
    code: tuple[str, ...]
    labels: dict[int, str]

    @property
    def line_count(self) -> int:
        return len(self.lines)


# ---------------------------------------------------------------------------
# Pass 1: clause labels
# ---------------------------------------------------------------------------


def _label_lines(
    lines: Sequence[str],
    compiled: tuple[tuple[str, re.Pattern[str]], ...],
) -> tuple[frozenset[int], dict[int, str]]:
    boundaries: set[int] = set()
    labels: dict[int, str] = {}
    for idx, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped:
            boundaries.add(idx)
            continue
        for label, pattern in compiled:
            if pattern.match(stripped):
                boundaries.add(idx)
                labels[idx] = label
                break
    return frozenset(boundaries), labels


# ---------------------------------------------------------------------------
# Pass 2: CTE bodies
# ---------------------------------------------------------------------------


def _cte_blocks(doc: _DocumentView) -> list[Block]:
    blocks: list[Block] = []
    in_with = False
    depth = 0
    for idx, code in enumerate(doc.code, start=1):
        stripped = code.strip()
        if _WITH_RE.match(stripped):
            in_with = True
        elif in_with and depth == 0 and _SELECT_RE.match(stripped):
            in_with = False

        if in_with and _CTE_OPEN_RE.search(stripped) and idx < doc.line_count:
            end = _matching_close(doc.code, idx)
            blocks.append(Block(BlockKind.CTE, idx + 1, end, CTE_LABEL))

        depth = max(0, depth + code.count("(") - code.count(")"))
    return blocks


def _matching_close(code_lines: Sequence[str], open_line: int) -> int:
    """Line whose ``)`` balances the ``(`` ending *open_line*, else the last line."""
    depth = 1
    for idx in range(open_line + 1, len(code_lines) + 1):
        code = code_lines[idx - 1]
        depth += code.count("(") - code.count(")")
        if depth <= 0:
            return idx
    return len(code_lines)


# ---------------------------------------------------------------------------
# Pass 3: subqueries
# ---------------------------------------------------------------------------


def _subquery_blocks(doc: _DocumentView) -> list[Block]:
    text = "\n".join(doc.lines)
    n = len(text)
    blocks: list[Block] = []
    # [open_line, is_subquery]
    stack: list[list] = []
    line = 1
    i = 0
    while i < n:
        ch = text[i]
        if ch == "\n":
            line += 1
            i += 1
        elif ch == "'" or ch == '"':
            end = text.find(ch, i + 1)
            while end != -1 and end + 1 < n and text[end + 1] == ch:
                end = text.find(ch, end + 2)
            end = n if end == -1 else end + 1
            line += text.count("\n", i, end)
            i = end
        elif text.startswith("--", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            line += text.count("\n", i, end)
            i = end
        elif ch == "(":
            stack.append([line, False])
            i += 1
        elif ch == ")":
            if stack:
                open_line, is_subquery = stack.pop()
                if is_subquery:
                    blocks.append(Block(BlockKind.SUBQUERY, open_line, line, SUBQUERY_LABEL))
            i += 1
        elif (ch == "S" or ch == "s") and stack and _SELECT_WORD_RE.match(text, i):
            if i == 0 or not (text[i - 1].isalnum() or text[i - 1] == "_"):
                stack[-1][1] = True
            i += 6
        else:
            i += 1

    while stack:
        open_line, is_subquery = stack.pop()
        if is_subquery:
            blocks.append(Block(BlockKind.SUBQUERY, open_line, doc.line_count, SUBQUERY_LABEL))
    return blocks


# ---------------------------------------------------------------------------
# Pass 4: procedural blocks
# ---------------------------------------------------------------------------


def _procedural_blocks(doc: _DocumentView) -> list[Block]:
    blocks: list[Block] = []
    stripped = [code.strip() for code in doc.code]
    for start, code in enumerate(stripped, start=1):
        if not _BEGIN_RE.match(code):
            continue
        counter = 1
        end = doc.line_count
        for idx in range(start + 1, doc.line_count + 1):
            line = stripped[idx - 1]
            if _BEGIN_RE.match(line):
                counter += 1
            elif _END_RE.match(line):
                counter -= 1
                if counter == 0:
                    end = idx
                    break
        blocks.append(Block(BlockKind.PROCEDURAL_BLOCK, start, end, PROCEDURAL_LABEL))
    return blocks


# ---------------------------------------------------------------------------
# Pass 5: clause fallback
# ---------------------------------------------------------------------------


def _clause_blocks(doc: _DocumentView) -> list[Block]:
    starts = sorted(doc.labels)
    if not starts:
        return [Block(BlockKind.CLAUSE, 1, doc.line_count, PREAMBLE_LABEL)]

    blocks: list[Block] = []
    if starts[0] > 1:
        blocks.append(Block(BlockKind.CLAUSE, 1, starts[0] - 1, PREAMBLE_LABEL))
    for pos, start in enumerate(starts):
        end = starts[pos + 1] - 1 if pos + 1 < len(starts) else doc.line_count
        blocks.append(Block(BlockKind.CLAUSE, start, end, doc.labels[start]))
    return blocks


_PASSES: tuple[Callable[[_DocumentView], list[Block]], ...] = (
    _cte_blocks,
    _subquery_blocks,
    _procedural_blocks,
    _clause_blocks,
)


def _owners(line_count: int, blocks: Sequence[Block]) -> tuple[int | None, ...]:
    owners: list[int | None] = [None] * line_count
    for pos, block in enumerate(blocks):
        for line in range(max(1, block.start_line), min(line_count, block.end_line) + 1):
            if owners[line - 1] is None:
                owners[line - 1] = pos
    return tuple(owners)


@profile_operation("review.segment")
def segment_document(
    document: str | Sequence[str],
    *,
    clause_patterns: tuple[ClausePattern, ...] = SEGMENT_CLAUSE_PATTERNS,
) -> Segmentation:
    """Segment one document into structural blocks.

    Parameters
    ----------
    document:
        Canonical document text, or its already-split lines.
    clause_patterns:
        Ordered clause-start table; the first matching entry labels a line.

    Returns
    -------
    Segmentation
        Boundary lines, their labels, every detected block in registration
        order and a line-to-block lookup.  Every line is covered by at least
        one block.
    """
    lines = split_lines(document) if isinstance(document, str) else list(document)
    if not lines:
        lines = [""]

    boundaries, labels = _label_lines(lines, compile_clause_patterns(clause_patterns))
    doc = _DocumentView(
        lines=tuple(lines),
        code=tuple(_code_only(line) for line in lines),
        labels=labels,
    )

    blocks: list[Block] = []
    for run_pass in _PASSES:
        blocks.extend(run_pass(doc))

    logger.debug(
        "Segmented %d lines into %d blocks (%d boundaries)",
        doc.line_count,
        len(blocks),
        len(boundaries),
    )
    return Segmentation(
        line_count=doc.line_count,
        boundaries=boundaries,
        labels=labels,
        blocks=tuple(blocks),
        _owners=_owners(doc.line_count, blocks),
    )
