"""Coalesce line-level diff operations into structure-aware change groups.

The grouper turns the flat operation list into a short list of groups an
explainer can address one at a time:

1. unchanged ops are dropped; a deletion directly followed by an addition
   becomes a single modification unit anchored at the new-side line,
2. consecutive units of the same type and side with (nearly) consecutive
   line numbers form a *run*,
3. runs shorter than ``min_run_length`` stay granular, one group per line,
4. longer runs are anchored to their *dominant block* when one block covers
   at least ``dominant_threshold`` of the run; otherwise they are split at
   the structural boundaries they contain,
5. no group is longer than ``max_group_lines``.

Every changed line lands in exactly one group, and the output is a pure
function of the inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from review_engine.grouping.describe import describe_group, extract_preview
from review_engine.models.changes import ChangeGroup, ChangeType, GroupingParams, Side
from review_engine.models.diff import DiffKind, DiffOp
from review_engine.models.structure import Block, Segmentation
from review_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeUnit:
    """One changed line (or replaced line pair) on its anchor side."""

    type: ChangeType
    side: Side
    line: int
    old_line: int | None = None
    old_text: str | None = None
    new_text: str | None = None


# ---------------------------------------------------------------------------
# Units and runs
# ---------------------------------------------------------------------------


def collect_units(ops: Sequence[DiffOp]) -> list[ChangeUnit]:
    """Reduce diff ops to change units, pairing deletion+addition into modifications."""
    units: list[ChangeUnit] = []
    i = 0
    total = len(ops)
    while i < total:
        op = ops[i]
        if op.kind is DiffKind.UNCHANGED:
            i += 1
            continue

        if op.kind is DiffKind.DELETION:
            nxt = ops[i + 1] if i + 1 < total else None
            if nxt is not None and nxt.kind is DiffKind.ADDITION:
                units.append(
                    ChangeUnit(
                        type=ChangeType.MODIFICATION,
                        side=Side.BOTH,
                        line=nxt.new_line or 0,
                        old_line=op.old_line,
                        old_text=op.content,
                        new_text=nxt.content,
                    )
                )
                i += 2
                continue
            units.append(
                ChangeUnit(
                    type=ChangeType.DELETION,
                    side=Side.OLD,
                    line=op.old_line or 0,
                    old_line=op.old_line,
                    old_text=op.content,
                )
            )
        else:
            units.append(
                ChangeUnit(
                    type=ChangeType.ADDITION,
                    side=Side.NEW,
                    line=op.new_line or 0,
                    new_text=op.content,
                )
            )
        i += 1
    return units


def detect_runs(units: Sequence[ChangeUnit], gap_join: int = 0) -> list[list[ChangeUnit]]:
    """Split units into runs of same type/side with line steps of at most ``1 + gap_join``."""
    runs: list[list[ChangeUnit]] = []
    for unit in units:
        if runs:
            last = runs[-1][-1]
            if (
                unit.type is last.type
                and unit.side is last.side
                and last.line < unit.line <= last.line + 1 + gap_join
            ):
                runs[-1].append(unit)
                continue
        runs.append([unit])
    return runs


# ---------------------------------------------------------------------------
# Dominant block
# ---------------------------------------------------------------------------


def find_dominant_block(lines: Sequence[int], segmentation: Segmentation) -> tuple[Block | None, int]:
    """Return the block covering the most of *lines* and how many it covers.

    Ties go to the narrower block, then to the earlier-registered one.
    """
    best: Block | None = None
    best_cover = 0
    for block in segmentation.blocks:
        cover = sum(1 for line in lines if block.covers(line))
        if cover == 0:
            continue
        if cover > best_cover or (best is not None and cover == best_cover and block.span < best.span):
            best = block
            best_cover = cover
    return best, best_cover


def _dominates(block: Block | None, cover: int, run_length: int, threshold: float) -> bool:
    return block is not None and run_length > 0 and cover / run_length >= threshold


# ---------------------------------------------------------------------------
# Group assembly
# ---------------------------------------------------------------------------


def _chunks(units: Sequence[ChangeUnit], size: int) -> list[Sequence[ChangeUnit]]:
    return [units[k : k + size] for k in range(0, len(units), size)]


def _make_group(units: Sequence[ChangeUnit], label: str | None, params: GroupingParams) -> ChangeGroup:
    first = units[0]
    lines = [u.line for u in units]
    old_lines = [u.old_line for u in units if u.old_line is not None] if first.type is ChangeType.MODIFICATION else []
    return ChangeGroup(
        type=first.type,
        side=first.side,
        anchor_line=lines[0],
        span=len(lines),
        lines=lines,
        old_lines=old_lines,
        block_label=label,
        description=describe_group(
            first.type,
            lines,
            block_label=label,
            old_preview=extract_preview(first.old_text, params.preview_max_chars),
            new_preview=extract_preview(first.new_text, params.preview_max_chars),
        ),
    )


def _atomic_groups(units: Sequence[ChangeUnit], params: GroupingParams) -> list[ChangeGroup]:
    return [_make_group([u], None, params) for u in units]


def _capped_groups(units: Sequence[ChangeUnit], label: str | None, params: GroupingParams) -> list[ChangeGroup]:
    return [_make_group(chunk, label, params) for chunk in _chunks(units, params.max_group_lines)]


def _split_at_boundaries(
    units: Sequence[ChangeUnit],
    segmentation: Segmentation,
    params: GroupingParams,
) -> list[ChangeGroup]:
    """Cut *units* before every boundary line after the first unit."""
    segments: list[list[ChangeUnit]] = []
    for unit in units:
        if segments and not segmentation.is_boundary(unit.line):
            segments[-1].append(unit)
        else:
            segments.append([unit])

    groups: list[ChangeGroup] = []
    for segment in segments:
        if len(segment) < params.min_run_length:
            groups.extend(_atomic_groups(segment, params))
            continue
        block, cover = find_dominant_block([u.line for u in segment], segmentation)
        label = block.label if _dominates(block, cover, len(segment), params.dominant_threshold) else None
        groups.extend(_capped_groups(segment, label, params))
    return groups


def _group_long_run(
    run: Sequence[ChangeUnit],
    segmentation: Segmentation,
    params: GroupingParams,
) -> list[ChangeGroup]:
    block, cover = find_dominant_block([u.line for u in run], segmentation)
    if block is None or not _dominates(block, cover, len(run), params.dominant_threshold):
        return _split_at_boundaries(run, segmentation, params)

    before = [u for u in run if u.line < block.start_line]
    inside = [u for u in run if block.covers(u.line)]
    after = [u for u in run if u.line > block.end_line]

    groups: list[ChangeGroup] = []
    if before:
        groups.extend(_split_at_boundaries(before, segmentation, params))
    groups.extend(_capped_groups(inside, block.label, params))
    if after:
        groups.extend(_split_at_boundaries(after, segmentation, params))
    return groups


@profile_operation("review.group")
def group_changes(
    ops: Sequence[DiffOp],
    seg_old: Segmentation,
    seg_new: Segmentation,
    min_run_length: int = 3,
    max_group_lines: int = 12,
    gap_join: int = 0,
    *,
    params: GroupingParams | None = None,
) -> list[ChangeGroup]:
    """Group diff operations into ordered, described change groups.

    Parameters
    ----------
    ops:
        Forward-ordered operations from :func:`~review_engine.diff.align_lines`.
    seg_old, seg_new:
        Segmentations of the old and new canonical documents.  Deletion runs
        are matched against ``seg_old``; additions and modifications against
        ``seg_new``.
    min_run_length, max_group_lines, gap_join:
        Grouping tunables.  Ignored when *params* is given.
    params:
        Full parameter set, including the dominance threshold and preview
        length.  Out-of-range values are clamped, never rejected.

    Returns
    -------
    list[ChangeGroup]
        Groups in diff order (ascending line numbers on each side), with
        ``index`` set to the position in the list.
    """
    if params is None:
        params = GroupingParams(
            min_run_length=min_run_length,
            max_group_lines=max_group_lines,
            gap_join=gap_join,
        )
    params = params.clamped()

    groups: list[ChangeGroup] = []
    for run in detect_runs(collect_units(ops), params.gap_join):
        if len(run) < params.min_run_length:
            groups.extend(_atomic_groups(run, params))
            continue
        segmentation = seg_old if run[0].type is ChangeType.DELETION else seg_new
        groups.extend(_group_long_run(run, segmentation, params))

    logger.debug("Grouped %d ops into %d change groups", len(ops), len(groups))
    return [group.model_copy(update={"index": idx}) for idx, group in enumerate(groups)]
