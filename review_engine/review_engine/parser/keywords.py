"""Clause keyword tables shared by the canonicaliser and the segmenter.

Both tables are plain data so callers can swap in a dialect-specific variant
without touching the scanning code.  Patterns are matched case-insensitively.

* :data:`CANONICAL_BREAK_KEYWORDS` -- keywords the canonicaliser moves onto
  their own line.  ``major`` keywords additionally get a blank line before
  them.  Words inside multi-word keywords are separated by ``[ \\t]+`` so a
  keyword never spans a line break.
* :data:`SEGMENT_CLAUSE_PATTERNS` -- ordered clause-start patterns tested
  against a trimmed line; the first match labels the line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_WS = r"[ \t]+"


@dataclass(frozen=True, slots=True)
class ClauseKeyword:
    """A keyword the canonicaliser breaks before."""

    name: str
    pattern: str
    major: bool = True


@dataclass(frozen=True, slots=True)
class ClausePattern:
    """A clause-start pattern used to label segmenter boundary lines."""

    label: str
    pattern: str


CANONICAL_BREAK_KEYWORDS: tuple[ClauseKeyword, ...] = (
    ClauseKeyword("SELECT", r"SELECT"),
    ClauseKeyword("FROM", r"FROM"),
    ClauseKeyword("WHERE", r"WHERE"),
    ClauseKeyword("INNER JOIN", rf"INNER{_WS}JOIN"),
    ClauseKeyword("LEFT JOIN", rf"LEFT(?:{_WS}OUTER)?{_WS}JOIN"),
    ClauseKeyword("RIGHT JOIN", rf"RIGHT(?:{_WS}OUTER)?{_WS}JOIN"),
    ClauseKeyword("FULL JOIN", rf"FULL(?:{_WS}OUTER)?{_WS}JOIN"),
    ClauseKeyword("CROSS JOIN", rf"CROSS{_WS}JOIN", major=False),
    ClauseKeyword("JOIN", r"JOIN", major=False),
    ClauseKeyword("GROUP BY", rf"GROUP{_WS}BY"),
    ClauseKeyword("ORDER BY", rf"ORDER{_WS}BY"),
    ClauseKeyword("HAVING", r"HAVING"),
    ClauseKeyword("UNION", rf"UNION(?:{_WS}ALL)?"),
)


SEGMENT_CLAUSE_PATTERNS: tuple[ClausePattern, ...] = (
    ClausePattern("WITH", r"WITH\b"),
    ClausePattern("SELECT", r"SELECT\b"),
    ClausePattern("FROM", r"FROM\b"),
    ClausePattern("JOIN", r"(?:(?:INNER|CROSS|NATURAL|LEFT|RIGHT|FULL)(?:\s+OUTER)?\s+)?JOIN\b"),
    ClausePattern("WHERE", r"WHERE\b"),
    ClausePattern("CONNECT BY", r"CONNECT\s+BY\b"),
    ClausePattern("START WITH", r"START\s+WITH\b"),
    ClausePattern("GROUP BY", r"GROUP\s+BY\b"),
    ClausePattern("HAVING", r"HAVING\b"),
    ClausePattern("MODEL", r"MODEL\b"),
    ClausePattern("ORDER BY", r"ORDER\s+BY\b"),
    ClausePattern("UNION", r"UNION(?:\s+ALL)?\b"),
    ClausePattern("INSERT", r"INSERT\b"),
    ClausePattern("UPDATE", r"UPDATE\b"),
    ClausePattern("DELETE", r"DELETE\b"),
    ClausePattern("MERGE", r"MERGE\b"),
    ClausePattern("DECLARE", r"DECLARE\b"),
    ClausePattern("BEGIN", r"BEGIN\b"),
    ClausePattern("EXCEPTION", r"EXCEPTION\b"),
    ClausePattern("END", r"END\b"),
    ClausePattern("CURSOR", r"CURSOR\b"),
    ClausePattern("LOOP", r"(?:(?:FOR|WHILE)\b.*\bLOOP|LOOP)\b"),
    ClausePattern("IF", r"(?:IF|ELSIF)\b"),
    ClausePattern(
        "CREATE",
        r"CREATE\s+(?:OR\s+REPLACE\s+)?(?:PROCEDURE|FUNCTION|TRIGGER|PACKAGE|VIEW|TABLE)\b",
    ),
)


def compile_clause_patterns(
    patterns: tuple[ClausePattern, ...] = SEGMENT_CLAUSE_PATTERNS,
) -> tuple[tuple[str, re.Pattern[str]], ...]:
    """Compile a clause table into ``(label, regex)`` pairs, preserving order."""
    return tuple((p.label, re.compile(p.pattern, re.IGNORECASE)) for p in patterns)
