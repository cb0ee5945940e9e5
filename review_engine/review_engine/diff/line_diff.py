"""Line aligner: longest-common-subsequence diff of two documents.

Lines are compared by a case-insensitive, whitespace-collapsed key so that
re-indentation and keyword casing do not register as changes, while the
emitted operations keep each side's original text.

The backtrack prefers consuming a *new* line as an addition whenever
``dp[i][j-1] >= dp[i-1][j]``.  This tie-break decides which of several
minimal alignments is produced and is kept fixed so the same pair of
documents always yields the same operations.

The dynamic-programming table is O(m*n) in both time and memory.  Callers
bound document size before aligning; above roughly 5,000 lines per side a
linear-space (Hirschberg) or banded variant becomes worth the complexity.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from review_engine.models.diff import ComparisonResult, DiffKind, DiffOp, DiffStats
from review_engine.parser.canonicalizer import split_lines
from review_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


def comparison_key(line: str) -> str:
    """Key two lines are compared by: whitespace collapsed, upper-cased."""
    return " ".join(line.split()).upper()


@profile_operation("review.diff")
def align_lines(old_lines: Sequence[str], new_lines: Sequence[str]) -> list[DiffOp]:
    """Align two line sequences and return the forward-ordered operations.

    Parameters
    ----------
    old_lines:
        Lines of the base document.
    new_lines:
        Lines of the target document.

    Returns
    -------
    list[DiffOp]
        Operations in document order.  Unchanged ops carry the old text in
        ``content`` and the new text in ``new_content``; every op carries the
        1-based line number(s) of the side(s) it belongs to.
    """
    old_keys = [comparison_key(line) for line in old_lines]
    new_keys = [comparison_key(line) for line in new_lines]
    m, n = len(old_keys), len(new_keys)

    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row, prev = dp[i], dp[i - 1]
        old_key = old_keys[i - 1]
        for j in range(1, n + 1):
            if old_key == new_keys[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                row[j] = row[j - 1] if row[j - 1] >= prev[j] else prev[j]

    ops: list[DiffOp] = []
    i, j = m, n
    while i > 0 or j > 0:
        if i > 0 and j > 0 and old_keys[i - 1] == new_keys[j - 1]:
            ops.append(
                DiffOp(
                    kind=DiffKind.UNCHANGED,
                    content=old_lines[i - 1],
                    old_line=i,
                    new_line=j,
                    new_content=new_lines[j - 1],
                )
            )
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
            ops.append(DiffOp(kind=DiffKind.ADDITION, content=new_lines[j - 1], new_line=j))
            j -= 1
        else:
            ops.append(DiffOp(kind=DiffKind.DELETION, content=old_lines[i - 1], old_line=i))
            i -= 1

    ops.reverse()
    logger.debug("Aligned %d old / %d new lines into %d ops (lcs=%d)", m, n, len(ops), dp[m][n])
    return ops


def tally_stats(ops: Sequence[DiffOp]) -> DiffStats:
    """Count operations, folding each deletion+addition pair into a modification.

    A pair is any deletion immediately followed by an addition.  Inside a
    longer run (``- - + +``) only the adjacent pair in the middle folds, so
    ``additions + modifications`` always equals the number of added lines and
    ``deletions + modifications`` the number of deleted lines.
    """
    additions = deletions = modifications = unchanged = 0
    last = len(ops) - 1
    for idx, op in enumerate(ops):
        if op.kind is DiffKind.UNCHANGED:
            unchanged += 1
        elif op.kind is DiffKind.ADDITION:
            if idx > 0 and ops[idx - 1].kind is DiffKind.DELETION:
                modifications += 1
            else:
                additions += 1
        elif not (idx < last and ops[idx + 1].kind is DiffKind.ADDITION):
            deletions += 1

    return DiffStats(
        additions=additions,
        deletions=deletions,
        modifications=modifications,
        unchanged=unchanged,
    )


def diff_documents(old_text: str, new_text: str) -> ComparisonResult:
    """Diff two canonical documents.

    The texts are split on line feeds as-is; canonicalise them first for a
    layout-insensitive comparison.
    """
    ops = align_lines(split_lines(old_text), split_lines(new_text))
    return ComparisonResult(ops=ops, stats=tally_stats(ops))
