"""Tests for the sqlreview Typer application.

Commands are driven through ``typer.testing.CliRunner`` against SQL files
written to ``tmp_path``.  Machine-readable output is read from stdout;
human-readable Rich output and errors go to stderr.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from review_cli.app import app

runner = CliRunner()


def _write(tmp_path: Path, name: str, text: str) -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


@pytest.fixture
def pair(tmp_path: Path) -> tuple[str, str]:
    return (
        _write(tmp_path, "old.sql", "SELECT a FROM t"),
        _write(tmp_path, "new.sql", "SELECT a, b FROM t"),
    )


# ---------------------------------------------------------------------------
# canonicalize
# ---------------------------------------------------------------------------


class TestCanonicalize:
    def test_writes_canonical_text_to_stdout(self, tmp_path: Path):
        path = _write(tmp_path, "q.sql", "SELECT a, b FROM t")
        result = runner.invoke(app, ["canonicalize", path])
        assert result.exit_code == 0
        assert result.stdout == "SELECT a,\n  b\n\nFROM t\n"

    def test_json(self, tmp_path: Path):
        path = _write(tmp_path, "q.sql", "select 1")
        result = runner.invoke(app, ["--json", "canonicalize", path])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"version": "v1", "canonical": "select 1\n"}

    def test_missing_file_exits_2(self, tmp_path: Path):
        result = runner.invoke(app, ["canonicalize", str(tmp_path / "missing.sql")])
        assert result.exit_code == 2
        assert "Cannot read" in result.output


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


class TestDiff:
    def test_human_output(self, pair: tuple[str, str]):
        result = runner.invoke(app, ["diff", *pair])
        assert result.exit_code == 0
        assert "Comparison" in result.output
        assert "Change Groups" in result.output

    def test_json_report(self, pair: tuple[str, str]):
        result = runner.invoke(app, ["--json", "diff", *pair])
        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["comparison"]["stats"]["modifications"] == 1
        assert report["comparison"]["stats"]["additions"] == 1
        first = report["groups"][0]
        assert first["type"] == "modification"
        assert first["anchor_line"] == 1
        assert report["cached"] is False

    def test_identical_files(self, tmp_path: Path):
        path = _write(tmp_path, "q.sql", "SELECT a FROM t")
        result = runner.invoke(app, ["diff", path, path])
        assert result.exit_code == 0
        assert "No changes." in result.output

    def test_grouping_options(self, tmp_path: Path):
        old = _write(tmp_path, "old.sql", "-- c0\n-- keep0\n-- c1\n-- keep1\n-- c2\n")
        new = _write(tmp_path, "new.sql", "-- x0\n-- keep0\n-- x1\n-- keep1\n-- x2\n")
        separate = json.loads(runner.invoke(app, ["--json", "diff", old, new]).stdout)
        joined = json.loads(
            runner.invoke(app, ["--json", "diff", old, new, "--gap-join", "1", "--min-run", "2"]).stdout
        )
        assert len(separate["groups"]) == 3
        assert len(joined["groups"]) == 1

    def test_document_too_large_exits_1(self, pair: tuple[str, str], monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SQLREVIEW_MAX_DOCUMENT_CHARS", "5")
        result = runner.invoke(app, ["diff", *pair])
        assert result.exit_code == 1
        assert "the limit is 5" in result.output

    def test_verbose_prints_timings(self, pair: tuple[str, str]):
        result = runner.invoke(app, ["--verbose", "diff", *pair])
        assert result.exit_code == 0
        assert "Timings" in result.output
        assert "review.diff" in result.output


# ---------------------------------------------------------------------------
# segment
# ---------------------------------------------------------------------------


class TestSegment:
    def test_json(self, tmp_path: Path):
        path = _write(tmp_path, "q.sql", "SELECT a FROM t")
        result = runner.invoke(app, ["--json", "segment", path])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["line_count"] == 3
        assert payload["labels"] == {"1": "SELECT", "3": "FROM"}
        assert [b["label"] for b in payload["blocks"]] == ["SELECT", "FROM"]

    def test_human_output(self, tmp_path: Path):
        path = _write(tmp_path, "q.sql", "WITH c AS (SELECT 1 FROM t) SELECT * FROM c")
        result = runner.invoke(app, ["segment", path])
        assert result.exit_code == 0
        assert "Blocks" in result.output
        assert "cte" in result.output.lower()


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


class TestScan:
    def test_new_only(self, tmp_path: Path):
        path = _write(tmp_path, "new.sql", "SELECT a\nFROM t\nWHERE x = 500\n")
        result = runner.invoke(app, ["--json", "scan", path])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["mode"] == "new-only"
        assert [f["line_number"] for f in payload["findings"]] == [3]

    def test_against_old_version(self, tmp_path: Path):
        old = _write(tmp_path, "old.sql", "SELECT a\nFROM t\nWHERE x = 500\n")
        new = _write(tmp_path, "new.sql", "SELECT a\nFROM t\nWHERE x = 500\n  AND y = 750\n")
        payload = json.loads(runner.invoke(app, ["--json", "scan", new, "--old", old]).stdout)
        assert payload["mode"] == "diff-new"
        assert [f["line_number"] for f in payload["findings"]] == [4]

    def test_new_only_flag_overrides_old(self, tmp_path: Path):
        old = _write(tmp_path, "old.sql", "SELECT a\nWHERE x = 500\n")
        new = _write(tmp_path, "new.sql", "SELECT a\nWHERE x = 500\n")
        payload = json.loads(runner.invoke(app, ["--json", "scan", new, "--old", old, "--new-only"]).stdout)
        assert payload["mode"] == "new-only"
        assert len(payload["findings"]) == 1

    def test_clean_file(self, tmp_path: Path):
        path = _write(tmp_path, "new.sql", "SELECT a\nFROM t\n")
        result = runner.invoke(app, ["scan", path])
        assert result.exit_code == 0
        assert "No hardcoded values found" in result.output

    def test_empty_file_exits_1(self, tmp_path: Path):
        path = _write(tmp_path, "new.sql", "   \n")
        result = runner.invoke(app, ["scan", path])
        assert result.exit_code == 1
        assert "empty" in result.output
