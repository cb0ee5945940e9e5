"""sqlreview CLI application -- Typer-based front end for the review engine.

Provides commands for canonicalising, diffing, segmenting and scanning SQL
files.  Human-readable output goes to *stderr* via Rich; machine-readable
output (canonical text, ``--json`` reports) goes to *stdout* so pipelines
can compose cleanly.

Exit codes: 0 on success, 1 when the review layer rejects the input,
2 when an input file cannot be read.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from review_cli.display import (
    display_profile_stats,
    display_review_report,
    display_scan_result,
    display_segmentation,
    segmentation_to_dict,
)
from review_engine.config import Settings, load_settings
from review_engine.logging_config import configure_logging
from review_engine.models.changes import GroupingParams
from review_engine.parser.canonicalizer import CanonicalizerRules, canonicalize_sql, get_canonicalizer_version
from review_engine.parser.segmenter import segment_document
from review_engine.review.errors import ReviewError
from review_engine.review.payload import redact_error_message
from review_engine.review.pipeline import review_documents
from review_engine.scan.hardcode import scan_hardcoded
from review_engine.telemetry.profiling import ProfileCollector

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="sqlreview",
    help="sqlreview - structure-aware diffs and hardcode scans for SQL changes",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_json_output: bool = False
_verbose: bool = False


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log at DEBUG level and print operation timings.",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output, _verbose  # noqa: PLW0603
    _json_output = json_mode
    _verbose = verbose


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings() -> Settings:
    settings = load_settings()
    configure_logging(settings, level="DEBUG" if _verbose else None)
    if _verbose:
        ProfileCollector.get_instance().clear()
    return settings


def _read_sql(path: Path) -> str:
    """Read an input file, exiting with code 2 when it cannot be read."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Cannot read {escape(str(path))}: {escape(str(exc))}[/red]")
        raise typer.Exit(code=2) from exc


def _fail(exc: ReviewError) -> None:
    console.print(f"[red]{escape(redact_error_message(str(exc)))}[/red]")
    raise typer.Exit(code=1) from exc


def _write_json(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


def _finish() -> None:
    if _verbose:
        display_profile_stats(console, ProfileCollector.get_instance().get_all_stats())


# ---------------------------------------------------------------------------
# canonicalize
# ---------------------------------------------------------------------------


@app.command()
def canonicalize(
    file: Path = typer.Argument(..., help="SQL file to canonicalise.", dir_okay=False),
) -> None:
    """Print the canonical form of a SQL file."""
    settings = _settings()
    canonical = canonicalize_sql(_read_sql(file), rules=CanonicalizerRules(tab_width=settings.tab_width))

    if _json_output:
        _write_json({"version": get_canonicalizer_version(), "canonical": canonical})
    else:
        sys.stdout.write(canonical)
    _finish()


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


@app.command()
def diff(
    old: Path = typer.Argument(..., help="Previous version of the SQL.", dir_okay=False),
    new: Path = typer.Argument(..., help="New version of the SQL.", dir_okay=False),
    min_run: int | None = typer.Option(
        None,
        "--min-run",
        help="Shortest run of changed lines merged into one group.",
    ),
    max_lines: int | None = typer.Option(
        None,
        "--max-lines",
        help="Maximum number of lines in one change group.",
    ),
    gap_join: int | None = typer.Option(
        None,
        "--gap-join",
        help="Line gap tolerated inside a run of changes.",
    ),
) -> None:
    """Compare two SQL files and list structure-aware change groups."""
    settings = _settings()
    old_sql = _read_sql(old)
    new_sql = _read_sql(new)

    base = settings.grouping_params()
    params = GroupingParams(
        min_run_length=base.min_run_length if min_run is None else min_run,
        max_group_lines=base.max_group_lines if max_lines is None else max_lines,
        gap_join=base.gap_join if gap_join is None else gap_join,
        dominant_threshold=base.dominant_threshold,
        preview_max_chars=base.preview_max_chars,
    )

    try:
        report = review_documents(old_sql, new_sql, settings=settings, params=params)
    except ReviewError as exc:
        _fail(exc)

    if _json_output:
        _write_json(report.model_dump(mode="json"))
    else:
        display_review_report(console, report)
    _finish()


# ---------------------------------------------------------------------------
# segment
# ---------------------------------------------------------------------------


@app.command()
def segment(
    file: Path = typer.Argument(..., help="SQL file to segment.", dir_okay=False),
) -> None:
    """Show the structural blocks detected in a SQL file."""
    settings = _settings()
    canonical = canonicalize_sql(_read_sql(file), rules=CanonicalizerRules(tab_width=settings.tab_width))
    segmentation = segment_document(canonical)

    if _json_output:
        _write_json(segmentation_to_dict(segmentation))
    else:
        display_segmentation(console, segmentation)
    _finish()


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


@app.command()
def scan(
    new: Path = typer.Argument(..., help="SQL file to scan.", dir_okay=False),
    old: Path | None = typer.Option(
        None,
        "--old",
        help="Previous version; only lines changed relative to it are scanned.",
        dir_okay=False,
    ),
    new_only: bool = typer.Option(
        False,
        "--new-only",
        help="Scan every line of NEW even when --old is given.",
    ),
) -> None:
    """Scan a SQL file for hardcoded secrets, environments and literals."""
    settings = _settings()
    new_sql = _read_sql(new)
    old_sql = _read_sql(old) if old is not None else ""

    try:
        result = scan_hardcoded(new_sql, old_sql, new_only=new_only, max_chars=settings.max_document_chars)
    except ReviewError as exc:
        _fail(exc)

    if _json_output:
        _write_json(result.model_dump(mode="json"))
    else:
        display_scan_result(console, result)
    _finish()
