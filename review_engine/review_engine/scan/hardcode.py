"""Line-level scanner for hardcoded values in SQL.

The scanner looks only at lines of the *new* document: the lines an edit
touched (from a raw, non-canonical diff so line numbers match the file as
submitted), or every line when there is nothing to compare against.

Rules, in evaluation order per line:

* ``secret/credential`` (block) -- passwords, tokens, API keys;
* ``env-or-schema`` (block) -- environment names such as ``prod`` or ``uat``;
* lines about id columns, price rounding or lookup columns stop here, since
  literals next to them are expected;
* ``magic-number`` (warn) -- numeric literals outside a small whitelist;
* ``in-list-3plus`` (warn) -- ``IN (...)`` lists with three or more literals.

Error-diagnostic ``SUBSTR`` arguments, stable ``APPLICATION_ID`` values and
lines annotated ``-- business rule`` are carved out of the warnings.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from pydantic import BaseModel, Field

from review_engine.diff.aligned_rows import build_aligned_rows, new_touched_lines
from review_engine.diff.line_diff import align_lines
from review_engine.review.errors import DocumentTooLargeError, EmptyDocumentError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    BLOCK = "block"
    WARN = "warn"
    INFO = "info"


class ScanMode(str, Enum):
    """Which new-side lines were scanned."""

    NEW_ONLY = "new-only"
    DIFF_NEW = "diff-new"


class Finding(BaseModel):
    """One rule hit on one line of the new document."""

    line_number: int = Field(..., description="1-based line in the new document as submitted.")
    side: str = "new"
    rule: str
    reason: str
    snippet: str = Field(..., description="The full original line, comments included.")
    literals: list[str] = Field(default_factory=list)
    severity: Severity

    def fallback_explanation(self) -> str:
        return f"{self.severity.value.upper()}: {self.reason}\nLine {self.line_number}: {self.snippet}"


class ScanResult(BaseModel):
    mode: ScanMode
    scanned_lines: list[int] = Field(default_factory=list)
    findings: list[Finding] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------

NUMERIC_WHITELIST = frozenset({"0", "1", "2", "100", "2.00", "0.00"})
SUBSTR_LENGTH_ALLOWLIST = frozenset({"128", "255", "256", "512", "1000", "1024", "2000", "4000"})
STABLE_APPLICATION_IDS = frozenset({"200", "222"})

_ID_COLUMN_RE = re.compile(r"\b(?:USER_ID|CLIENT_ID|CUSTOMER_ID|ACCOUNT_ID)\b", re.IGNORECASE)
_LOOKUP_COLUMN_RES = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (r"\bSTATUS\b", r"\bSTATE_CODE\b", r"\bTYPE_CODE\b", r"\bCATEGORY(?:_CODE)?\b", r"\bROLE(?:_CODE)?\b")
)
_ENV_RE = re.compile(r"\b(?:dev|stage|staging|prod|production|uat)\b", re.IGNORECASE)
_SECRET_RE = re.compile(
    r"\b(?:IDENTIFIED\s+BY|PASSWORD\s*=|ACCESS[_\-]?TOKEN|API[_\-]?KEY|SECRET)\b",
    re.IGNORECASE,
)
_STRING_LITERAL_RE = re.compile(r"'((?:''|[^'])*)'")
_NUMBER_LITERAL_RE = re.compile(r"(?<![\w.])\d+(?:\.\d+)?(?![\w.])")

_FULL_LINE_COMMENT_RE = re.compile(r"^\s*(?:--|/\*|\*|\*/)")
_INLINE_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_INLINE_DASH_COMMENT_RE = re.compile(r"--.*$")

_PRICE_ROUNDING_RES = (
    re.compile(r"\bROUND\s*\([^)]*,\s*2\s*\)", re.IGNORECASE),
    re.compile(r"\bROUND\s*\(\s*NVL\s*\(", re.IGNORECASE),
)
_ERROR_CONTEXT_RE = re.compile(
    r"SQLERRM|DBMS_UTILITY\.FORMAT_ERROR_(?:STACK|BACKTRACE)|\$\$plsql_line",
    re.IGNORECASE,
)
_SUBSTR_CALL_RE = re.compile(r"\b(?:SUBSTRB?|DBMS_LOB\.SUBSTR)\s*\(([^)]*)\)", re.IGNORECASE)
_APP_ID_RE = re.compile(r"\bAPPLICATION_ID\b", re.IGNORECASE)
_APP_ID_EQ_RE = re.compile(r"\bAPPLICATION_ID\b\s*=\s*(\d+)", re.IGNORECASE)
_APP_ID_IN_RE = re.compile(r"\bAPPLICATION_ID\b\s*IN\s*\(([^)]+)\)", re.IGNORECASE)
_NOTE_RE = re.compile(r"--\s*(?:business rule|per\s+requirements?|per\s+spec)", re.IGNORECASE)
_IN_LIST_RE = re.compile(r"\bIN\s*\(", re.IGNORECASE)
_DIGITS_RE = re.compile(r"^\d+$")
_DECIMAL_RE = re.compile(r"^\d+(?:\.\d+)?$")


def strip_inline_comments(line: str) -> str:
    return _INLINE_DASH_COMMENT_RE.sub("", _INLINE_BLOCK_COMMENT_RE.sub("", line))


def string_literals(line: str) -> list[str]:
    return [m.group(1).replace("''", "'") for m in _STRING_LITERAL_RE.finditer(line)]


def number_literals(line: str) -> list[str]:
    return _NUMBER_LITERAL_RE.findall(line)


def _drop_substr_diagnostics(line: str, numbers: list[str]) -> list[str]:
    """Forget SUBSTR start and buffer-length arguments used to trim error text."""
    if not _ERROR_CONTEXT_RE.search(line):
        return numbers
    keep = list(numbers)
    for call in _SUBSTR_CALL_RE.finditer(line):
        args = [a for a in (strip_inline_comments(s).strip() for s in call.group(1).split(",")) if a]
        start = args[1] if len(args) > 1 and _DIGITS_RE.match(args[1]) else None
        length = args[2] if len(args) > 2 and _DIGITS_RE.match(args[2]) else None
        if start:
            keep = [n for n in keep if n != start]
        if length and length in SUBSTR_LENGTH_ALLOWLIST:
            keep = [n for n in keep if n != length]
    return keep


def _application_ids(line: str) -> list[str]:
    eq = _APP_ID_EQ_RE.search(line)
    if eq:
        return [eq.group(1)]
    in_list = _APP_ID_IN_RE.search(line)
    if in_list:
        return [t for t in (s.strip() for s in in_list.group(1).split(",")) if _DECIMAL_RE.match(t)]
    return []


def _only_stable_application_ids(line: str) -> bool:
    if not _APP_ID_RE.search(line):
        return False
    ids = _application_ids(line)
    return bool(ids) and all(v in STABLE_APPLICATION_IDS for v in ids)


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


def scan_line(text: str, line_number: int) -> list[Finding]:
    """Apply every rule to one line and return its findings."""
    findings: list[Finding] = []
    if not text or _FULL_LINE_COMMENT_RE.match(text):
        return findings

    line = strip_inline_comments(text)

    if _SECRET_RE.search(line):
        findings.append(
            Finding(
                line_number=line_number,
                rule="secret/credential",
                reason="Possible secret/credential or password found.",
                snippet=text,
                severity=Severity.BLOCK,
            )
        )
    elif _ENV_RE.search(line):
        findings.append(
            Finding(
                line_number=line_number,
                rule="env-or-schema",
                reason="Environment- or schema-specific reference appears hardcoded.",
                snippet=text,
                severity=Severity.BLOCK,
            )
        )

    if _ID_COLUMN_RE.search(line):
        return findings
    if any(p.search(line) for p in _PRICE_ROUNDING_RES):
        return findings
    if any(p.search(line) for p in _LOOKUP_COLUMN_RES):
        return findings

    numbers = [n for n in number_literals(line) if n not in NUMERIC_WHITELIST]
    numbers = _drop_substr_diagnostics(line, numbers)
    stable_app_ids = _only_stable_application_ids(line)

    if not stable_app_ids and numbers and not _NOTE_RE.search(text):
        findings.append(
            Finding(
                line_number=line_number,
                rule="magic-number",
                reason=f"Hardcoded numeric literal(s) without context: {', '.join(numbers)}",
                snippet=text,
                literals=numbers,
                severity=Severity.WARN,
            )
        )

    if not stable_app_ids and _IN_LIST_RE.search(line):
        distinct: list[str] = []
        for literal in string_literals(line) + numbers:
            literal = literal.strip()
            if literal and literal not in distinct:
                distinct.append(literal)
        if len(distinct) >= 3:
            findings.append(
                Finding(
                    line_number=line_number,
                    rule="in-list-3plus",
                    reason=f"IN-list with {len(distinct)} distinct hardcoded values.",
                    snippet=text,
                    literals=distinct,
                    severity=Severity.WARN,
                )
            )

    return findings


def _normalise(text: str) -> str:
    return (text or "").replace("\r\n", "\n").replace("\r", "\n")


def scan_hardcoded(
    new_text: str,
    old_text: str = "",
    *,
    new_only: bool = False,
    max_chars: int | None = None,
) -> ScanResult:
    """Scan the touched (or all) lines of *new_text* for hardcoded values.

    Parameters
    ----------
    new_text:
        The new document as submitted.
    old_text:
        The previous version.  When blank, every new line is scanned.
    new_only:
        Scan every new line even when *old_text* is given.
    max_chars:
        Optional per-document character limit.

    Raises
    ------
    EmptyDocumentError
        If *new_text* is blank.
    DocumentTooLargeError
        If either document exceeds *max_chars*.
    """
    new_text = _normalise(new_text)
    old_text = _normalise(old_text)
    if not new_text.strip():
        raise EmptyDocumentError("new")
    if max_chars is not None:
        for side, text in (("new", new_text), ("old", old_text)):
            if len(text) > max_chars:
                raise DocumentTooLargeError(side, len(text), max_chars)

    new_lines = new_text.split("\n")
    if new_only or not old_text.strip():
        mode = ScanMode.NEW_ONLY
        targets = list(range(1, len(new_lines) + 1))
    else:
        mode = ScanMode.DIFF_NEW
        ops = align_lines(old_text.split("\n"), new_lines)
        targets = new_touched_lines(build_aligned_rows(ops))

    findings: list[Finding] = []
    for line_number in targets:
        findings.extend(scan_line(new_lines[line_number - 1], line_number))
    findings.sort(key=lambda f: f.line_number)

    logger.debug("Scanned %d lines (%s): %d findings", len(targets), mode.value, len(findings))
    return ScanResult(mode=mode, scanned_lines=targets, findings=findings)
