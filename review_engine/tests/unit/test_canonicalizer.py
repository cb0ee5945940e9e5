"""Tests for review_engine.parser.canonicalizer."""

from __future__ import annotations

import pytest

from review_engine.parser.canonicalizer import (
    CURRENT_VERSION,
    CanonicalizerRules,
    CanonicalizerVersion,
    canonicalize_sql,
    compute_canonical_hash,
    get_canonicalizer_version,
    split_lines,
)

SAMPLES = [
    "",
    "   \n\n",
    "SELECT a FROM t",
    "select a, b, c from t where x = 1 group by a order by b",
    "SELECT * FROM (SELECT a FROM t) x",
    "WITH cte AS ( SELECT x FROM t ) SELECT * FROM cte",
    "SELECT 'it''s, FROM here' AS s FROM t",
    "SELECT a, -- first column\n  b FROM t",
    "/* header\n   comment */\nSELECT 1",
    "SELECT 'unterminated FROM t",
    "SELECT\r\n\ta,\r\n\tb\r\nFROM t\r\n\r\n\r\n\r\nUNION ALL SELECT 1",
    "BEGIN\n  UPDATE t SET x = 1 WHERE y = 2;\nEND;",
    "SELECT ROUND(x, 2), EXTRACT(YEAR FROM d) FROM t LEFT OUTER JOIN u ON t.id = u.id",
    'SELECT "Weird  Name", x FROM t',
]

# ---------------------------------------------------------------------------
# Basic layout
# ---------------------------------------------------------------------------


class TestLayout:
    """Clause breaks, comma breaks and whitespace normalisation."""

    def test_empty_input_is_single_blank_line(self):
        assert canonicalize_sql("") == "\n"

    def test_whitespace_only_input_is_single_blank_line(self):
        assert canonicalize_sql("   \n\t\n\n") == "\n"

    def test_from_moves_to_its_own_line(self):
        assert canonicalize_sql("SELECT a FROM t") == "SELECT a\n\nFROM t\n"

    def test_list_commas_break_with_indent(self):
        assert canonicalize_sql("SELECT a, b FROM t") == "SELECT a,\n  b\n\nFROM t\n"

    def test_crlf_and_cr_are_normalised(self):
        assert canonicalize_sql("SELECT a\r\nFROM t\r") == "SELECT a\n\nFROM t\n"

    def test_internal_whitespace_collapses(self):
        assert canonicalize_sql("SELECT   a   AS   x    FROM   t   ") == "SELECT a AS x\n\nFROM t\n"

    def test_keyword_case_is_preserved(self):
        assert canonicalize_sql("select a from t") == "select a\n\nfrom t\n"

    def test_leading_tab_is_expanded(self):
        assert canonicalize_sql("\tSELECT a") == "  SELECT a\n"

    def test_tab_width_is_configurable(self):
        rules = CanonicalizerRules(tab_width=4)
        assert canonicalize_sql("\tSELECT a", rules=rules) == "    SELECT a\n"

    def test_blank_line_runs_collapse_to_one(self):
        assert canonicalize_sql("SELECT 1;\n\n\n\nSELECT 2;") == "SELECT 1;\n\nSELECT 2;\n"

    def test_result_ends_with_exactly_one_newline(self):
        out = canonicalize_sql("SELECT a FROM t\n\n\n")
        assert out.endswith("t\n")
        assert not out.endswith("\n\n")

    def test_join_keyword_breaks_without_blank_line(self):
        out = canonicalize_sql("SELECT a FROM t JOIN u ON t.id = u.id")
        assert out == "SELECT a\n\nFROM t\nJOIN u ON t.id = u.id\n"

    def test_multi_word_keyword_whitespace_is_collapsed(self):
        out = canonicalize_sql("SELECT a FROM t GROUP    BY a")
        assert "\n\nGROUP BY a\n" in out


# ---------------------------------------------------------------------------
# Context sensitivity
# ---------------------------------------------------------------------------


class TestContexts:
    """Keywords and commas inside non-query parentheses stay inline."""

    def test_function_argument_commas_stay_inline(self):
        assert canonicalize_sql("SELECT ROUND(x, 2) FROM t") == "SELECT ROUND(x, 2)\n\nFROM t\n"

    def test_from_inside_function_call_stays_inline(self):
        out = canonicalize_sql("SELECT EXTRACT(YEAR FROM d) FROM t")
        assert out == "SELECT EXTRACT(YEAR FROM d)\n\nFROM t\n"

    def test_subquery_clauses_break(self):
        out = canonicalize_sql("SELECT * FROM (SELECT a FROM t) x")
        assert out == "SELECT *\n\nFROM (\n\nSELECT a\n\nFROM t) x\n"

    def test_qualified_names_are_not_keywords(self):
        out = canonicalize_sql("SELECT x.select, from_date FROM t")
        assert split_lines(out)[:2] == ["SELECT x.select,", "  from_date"]

    def test_trailing_comment_keeps_comma_line(self):
        out = canonicalize_sql("SELECT a, -- first\n b FROM t")
        assert split_lines(out)[0] == "SELECT a, -- first"


# ---------------------------------------------------------------------------
# Verbatim exclusions
# ---------------------------------------------------------------------------


class TestExclusions:
    """Literals and comments are copied byte-for-byte."""

    def test_string_literal_is_verbatim(self):
        out = canonicalize_sql("SELECT 'a  ,  FROM b' FROM t")
        assert out == "SELECT 'a  ,  FROM b'\n\nFROM t\n"

    def test_escaped_quote_does_not_end_literal(self):
        out = canonicalize_sql("SELECT 'it''s   FROM' FROM t")
        assert "'it''s   FROM'" in out

    def test_line_comment_is_verbatim(self):
        out = canonicalize_sql("SELECT a --  keep   FROM   this\nFROM t")
        assert "--  keep   FROM   this" in out

    def test_comment_only_input_is_unchanged(self):
        assert canonicalize_sql("-- just a comment\n") == "-- just a comment\n"

    def test_block_comment_spans_lines_verbatim(self):
        assert canonicalize_sql("/* block\n   comment */") == "/* block\n   comment */\n"

    def test_double_quoted_identifier_is_verbatim(self):
        assert '"Weird  Name"' in canonicalize_sql('SELECT "Weird  Name" FROM t')

    def test_unterminated_literal_passes_through(self):
        assert canonicalize_sql("SELECT 'abc FROM t") == "SELECT 'abc FROM t\n"

    def test_unterminated_block_comment_passes_through(self):
        assert canonicalize_sql("SELECT 1 /* open FROM") == "SELECT 1 /* open FROM\n"


# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------


class TestIdempotence:
    @pytest.mark.parametrize("sql", SAMPLES)
    def test_canonicalize_twice_is_stable(self, sql: str):
        once = canonicalize_sql(sql)
        assert canonicalize_sql(once) == once

    @pytest.mark.parametrize("sql", SAMPLES)
    def test_literals_survive(self, sql: str):
        out = canonicalize_sql(sql)
        for literal in ("'it''s, FROM here'", "-- first column", '"Weird  Name"'):
            if literal in sql:
                assert literal in out


# ---------------------------------------------------------------------------
# Helpers and versioning
# ---------------------------------------------------------------------------


class TestSplitLines:
    def test_single_newline_is_one_blank_line(self):
        assert split_lines("\n") == [""]

    def test_trailing_newline_does_not_add_a_line(self):
        assert split_lines("a\nb\n") == ["a", "b"]

    def test_text_without_newline(self):
        assert split_lines("a") == ["a"]


class TestVersioning:
    def test_current_version(self):
        assert CURRENT_VERSION is CanonicalizerVersion.V1
        assert get_canonicalizer_version() == "v1"

    def test_hash_is_deterministic_sha256(self):
        h1 = compute_canonical_hash("SELECT 1\n", "SELECT 2\n")
        h2 = compute_canonical_hash("SELECT 1\n", "SELECT 2\n")
        assert h1 == h2
        assert len(h1) == 64

    def test_hash_is_order_sensitive(self):
        assert compute_canonical_hash("a\n", "b\n") != compute_canonical_hash("b\n", "a\n")

    def test_hash_separates_documents(self):
        assert compute_canonical_hash("ab", "c") != compute_canonical_hash("a", "bc")
