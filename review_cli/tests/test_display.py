"""Tests for review_cli.display -- Rich output formatting.

Rendered output is captured with a Console writing to a StringIO buffer.
"""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from review_cli.display import (
    _coloured,
    display_change_groups,
    display_profile_stats,
    display_review_report,
    display_scan_result,
    display_segmentation,
    segmentation_to_dict,
)
from review_engine.config import Settings
from review_engine.parser.segmenter import segment_document
from review_engine.review.pipeline import review_documents
from review_engine.scan.hardcode import ScanMode, ScanResult, scan_hardcoded


@pytest.fixture
def console() -> tuple[Console, io.StringIO]:
    buf = io.StringIO()
    return Console(file=buf, no_color=True, highlight=False, width=120), buf


class TestColoured:
    def test_known_value(self):
        assert _coloured("addition", {"addition": "green"}) == "[green]addition[/green]"

    def test_unknown_value_defaults_to_white(self):
        assert _coloured("other", {}) == "[white]other[/white]"


class TestReviewReport:
    def test_stats_and_groups(self, console):
        con, buf = console
        report = review_documents("SELECT a FROM t", "SELECT a, b FROM t", settings=Settings())
        display_review_report(con, report)
        out = buf.getvalue()
        assert "Comparison" in out
        assert "Modifications: 1" in out
        assert "Change Groups" in out
        assert "modification" in out

    def test_no_changes(self, console):
        con, buf = console
        report = review_documents("SELECT a FROM t", "SELECT a FROM t", settings=Settings())
        display_review_report(con, report)
        assert "No changes." in buf.getvalue()

    def test_truncation_notice(self, console):
        con, buf = console
        old = "\n".join(f"-- c{i}\n-- keep{i}" for i in range(4))
        new = "\n".join(f"-- x{i}\n-- keep{i}" for i in range(4))
        display_review_report(con, review_documents(old, new, settings=Settings(max_groups=1)))
        assert "Showing 1 of 4 change groups." in buf.getvalue()

    def test_markup_in_descriptions_is_escaped(self, console):
        con, buf = console
        report = review_documents("SELECT a FROM t", "SELECT [b] FROM t", settings=Settings())
        display_change_groups(con, report.groups)
        assert "[b]" in buf.getvalue()


class TestSegmentation:
    def test_table_and_boundaries(self, console):
        con, buf = console
        display_segmentation(con, segment_document(["SELECT a", "", "FROM t"]))
        out = buf.getvalue()
        assert "Blocks" in out
        assert "SELECT" in out
        assert "Boundaries: 1, 2, 3" in out

    def test_no_boundaries(self, console):
        con, buf = console
        display_segmentation(con, segment_document(["x := 1;"]))
        assert "Boundaries: (none)" in buf.getvalue()

    def test_to_dict(self):
        payload = segmentation_to_dict(segment_document(["SELECT a", "", "FROM t"]))
        assert payload["line_count"] == 3
        assert payload["boundaries"] == [1, 2, 3]
        assert payload["labels"] == {"1": "SELECT", "3": "FROM"}
        assert payload["blocks"][0] == {"kind": "CLAUSE", "label": "SELECT", "start_line": 1, "end_line": 2}


class TestScanResult:
    def test_findings_table(self, console):
        con, buf = console
        display_scan_result(con, scan_hardcoded("SELECT a\nWHERE x = 500"))
        out = buf.getvalue()
        assert "Hardcode Findings (new-only)" in out
        assert "magic-number" in out
        assert "warn" in out

    def test_empty(self, console):
        con, buf = console
        display_scan_result(con, ScanResult(mode=ScanMode.DIFF_NEW, scanned_lines=[2, 3]))
        assert "No hardcoded values found in 2 scanned line(s)." in buf.getvalue()


class TestProfileStats:
    def test_table(self, console):
        con, buf = console
        display_profile_stats(
            con,
            [{"operation": "review.diff", "count": 2, "mean_ms": 1.5, "max_ms": 2.25}],
        )
        out = buf.getvalue()
        assert "Timings" in out
        assert "review.diff" in out
        assert "2.250" in out

    def test_nothing_recorded(self, console):
        con, buf = console
        display_profile_stats(con, [])
        assert buf.getvalue() == ""
