"""Rich output formatting for the sqlreview CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from review_engine.models.changes import ChangeGroup
    from review_engine.models.review import ReviewReport
    from review_engine.models.structure import Segmentation
    from review_engine.scan.hardcode import ScanResult


# ---------------------------------------------------------------------------
# Colour mapping
# ---------------------------------------------------------------------------

_CHANGE_COLOURS: dict[str, str] = {
    "addition": "green",
    "deletion": "red",
    "modification": "yellow",
}

_SEVERITY_COLOURS: dict[str, str] = {
    "block": "bold red",
    "warn": "yellow",
    "info": "dim",
}


def _coloured(value: str, colours: dict[str, str]) -> str:
    colour = colours.get(value, "white")
    return f"[{colour}]{value}[/{colour}]"


# ---------------------------------------------------------------------------
# Diff report
# ---------------------------------------------------------------------------


def display_review_report(console: Console, report: ReviewReport) -> None:
    """Render diff statistics followed by the change-group table.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    report:
        Result of :func:`review_engine.review.pipeline.review_documents`.
    """
    stats = report.comparison.stats
    header_lines = [
        f"[bold]Additions:[/bold]     {stats.additions}",
        f"[bold]Deletions:[/bold]     {stats.deletions}",
        f"[bold]Modifications:[/bold] {stats.modifications}",
        f"[bold]Unchanged:[/bold]     {stats.unchanged}",
        f"[bold]Groups:[/bold]        {report.total_groups}",
    ]
    console.print(Panel("\n".join(header_lines), title="Comparison", border_style="blue"))

    if not report.groups:
        console.print("[dim]No changes.[/dim]")
        return

    display_change_groups(console, report.groups)
    if report.truncated:
        console.print(
            f"[yellow]Showing {len(report.groups)} of {report.total_groups} change groups.[/yellow]"
        )


def display_change_groups(console: Console, groups: list[ChangeGroup]) -> None:
    table = Table(title="Change Groups", show_lines=False, pad_edge=True, expand=False)
    table.add_column("#", style="dim", width=4, justify="right")
    table.add_column("Type")
    table.add_column("Side", justify="center")
    table.add_column("Lines", justify="right")
    table.add_column("Block")
    table.add_column("Description")

    for group in groups:
        lines = str(group.anchor_line) if group.span == 1 else f"{group.anchor_line}-{group.end_line}"
        table.add_row(
            str(group.index),
            _coloured(group.type.value, _CHANGE_COLOURS),
            group.side.value,
            lines,
            escape(group.block_label or "-"),
            escape(group.description),
        )

    console.print(table)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


def display_segmentation(console: Console, segmentation: Segmentation) -> None:
    """Render detected blocks and the boundary line list."""
    table = Table(title="Blocks", show_lines=False, pad_edge=True, expand=False)
    table.add_column("#", style="dim", width=4, justify="right")
    table.add_column("Kind", style="bold")
    table.add_column("Label")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Span", justify="right")

    for idx, block in enumerate(segmentation.blocks, start=1):
        table.add_row(
            str(idx),
            block.kind.value,
            escape(block.label),
            str(block.start_line),
            str(block.end_line),
            str(block.span),
        )
    console.print(table)

    boundaries = ", ".join(str(line) for line in sorted(segmentation.boundaries)) or "(none)"
    console.print(f"[bold]Boundaries:[/bold] {boundaries}")


def segmentation_to_dict(segmentation: Segmentation) -> dict[str, Any]:
    return {
        "line_count": segmentation.line_count,
        "boundaries": sorted(segmentation.boundaries),
        "labels": {str(line): label for line, label in sorted(segmentation.labels.items())},
        "blocks": [
            {
                "kind": block.kind.value,
                "label": block.label,
                "start_line": block.start_line,
                "end_line": block.end_line,
            }
            for block in segmentation.blocks
        ],
    }


# ---------------------------------------------------------------------------
# Hardcode scan
# ---------------------------------------------------------------------------


def display_scan_result(console: Console, result: ScanResult) -> None:
    """Render hardcode findings sorted by line."""
    if not result.findings:
        console.print(f"[green]No hardcoded values found in {len(result.scanned_lines)} scanned line(s).[/green]")
        return

    table = Table(
        title=f"Hardcode Findings ({result.mode.value})",
        show_lines=False,
        pad_edge=True,
        expand=False,
    )
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Severity")
    table.add_column("Rule", style="bold")
    table.add_column("Reason")
    table.add_column("Snippet")

    for finding in result.findings:
        table.add_row(
            str(finding.line_number),
            _coloured(finding.severity.value, _SEVERITY_COLOURS),
            finding.rule,
            escape(finding.reason),
            escape(finding.snippet.strip()),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Profiling
# ---------------------------------------------------------------------------


def display_profile_stats(console: Console, stats: list[dict[str, Any]]) -> None:
    if not stats:
        return
    table = Table(title="Timings", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Operation", style="bold")
    table.add_column("Calls", justify="right")
    table.add_column("Mean (ms)", justify="right")
    table.add_column("Max (ms)", justify="right")
    for row in stats:
        table.add_row(row["operation"], str(row["count"]), f"{row['mean_ms']:.3f}", f"{row['max_ms']:.3f}")
    console.print(table)
