"""Dual-column row projection of a line diff for side-by-side viewers."""

from __future__ import annotations

from collections.abc import Sequence

from review_engine.models.diff import AlignedRow, DiffKind, DiffOp, RowCell, RowKind


def build_aligned_rows(ops: Sequence[DiffOp]) -> list[AlignedRow]:
    """Project diff operations into aligned old/new display rows.

    A run of deletions directly followed by a run of additions is zipped
    position by position into modification rows; whatever is left over on
    either side becomes a plain deletion or addition row with a blank cell
    opposite it.
    """
    rows: list[AlignedRow] = []

    def add_row(kind: RowKind, old: DiffOp | None, new: DiffOp | None) -> None:
        visual = len(rows) + 1
        old_cell = RowCell(
            line_number=old.old_line if old else None,
            text=(old.old_text or "") if old else "",
            visual_index=visual,
        )
        new_cell = RowCell(
            line_number=new.new_line if new else None,
            text=(new.new_text or "") if new else "",
            visual_index=visual,
        )
        rows.append(AlignedRow(kind=kind, old=old_cell, new=new_cell))

    i = 0
    total = len(ops)
    while i < total:
        op = ops[i]
        if op.kind is DiffKind.UNCHANGED:
            add_row(RowKind.UNCHANGED, op, op)
            i += 1
            continue

        deleted: list[DiffOp] = []
        while i < total and ops[i].kind is DiffKind.DELETION:
            deleted.append(ops[i])
            i += 1
        added: list[DiffOp] = []
        while i < total and ops[i].kind is DiffKind.ADDITION:
            added.append(ops[i])
            i += 1

        paired = min(len(deleted), len(added))
        for k in range(paired):
            add_row(RowKind.MODIFICATION, deleted[k], added[k])
        for old_op in deleted[paired:]:
            add_row(RowKind.DELETION, old_op, None)
        for new_op in added[paired:]:
            add_row(RowKind.ADDITION, None, new_op)

    return rows


def new_touched_lines(rows: Sequence[AlignedRow]) -> list[int]:
    """Sorted new-side line numbers of added or modified rows."""
    touched = {
        row.new.line_number
        for row in rows
        if row.kind in (RowKind.ADDITION, RowKind.MODIFICATION) and row.new.line_number is not None
    }
    return sorted(touched)
