"""Versioned SQL canonicalisation for line-level comparison.

The canonicaliser reformats raw SQL so that two documents which differ only
in layout produce the same lines, and so that every clause tends to start a
line of its own.  It is a single-pass lexer, not a parser: it never raises,
and unterminated strings or comments are passed through verbatim.

**Canonicalisation rules (v1)**:
1. Normalise ``\\r\\n`` and lone ``\\r`` to ``\\n``.
2. Preserve leading indentation, expanding tabs to ``tab_width`` spaces.
3. Copy single-quoted literals (``''`` escapes a quote), double-quoted
   identifiers, ``--`` line comments and ``/* */`` block comments verbatim.
   Outside them, collapse whitespace runs to one space and drop trailing
   whitespace.
4. Break before clause keywords (SELECT, FROM, WHERE, JOINs, GROUP BY,
   ORDER BY, HAVING, UNION [ALL]) and after list commas.  Outside
   statement level, only parentheses that contain a ``SELECT`` count, so
   ``EXTRACT(YEAR FROM d)`` and ``ROUND(x, 2)`` stay on one line.
5. Put one blank line before each major clause keyword; never emit more
   than one consecutive blank line, nor leading blank lines.
6. End with exactly one trailing newline.

The rules are idempotent: ``canonicalize_sql(canonicalize_sql(x)) ==
canonicalize_sql(x)``.  The rule-set version is embedded in cache keys so a
future rule change invalidates previously memoised comparisons.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import re
from dataclasses import dataclass
from enum import Enum

from review_engine.parser.keywords import CANONICAL_BREAK_KEYWORDS, ClauseKeyword
from review_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


class CanonicalizerVersion(str, Enum):
    """Versioned canonicalisation rule-sets."""

    V1 = "v1"


CURRENT_VERSION: CanonicalizerVersion = CanonicalizerVersion.V1

_WORD_RE = re.compile(r"[A-Za-z_][\w$#]*")
_KEYWORD_GUARD = frozenset("._$#:@")


@dataclass(frozen=True)
class CanonicalizerRules:
    """Tunable parts of the v1 rule-set."""

    tab_width: int = 2
    comma_indent: int = 2
    keywords: tuple[ClauseKeyword, ...] = CANONICAL_BREAK_KEYWORDS


DEFAULT_RULES = CanonicalizerRules()


@functools.lru_cache(maxsize=8)
def _keyword_regex(keywords: tuple[ClauseKeyword, ...]) -> re.Pattern[str]:
    alternatives = "|".join(f"(?P<k{idx}>{kw.pattern})" for idx, kw in enumerate(keywords))
    return re.compile(rf"(?:{alternatives})\b", re.IGNORECASE)


def _literal_end(text: str, start: int, quote: str) -> int:
    """Index just past the literal opened at *start*; end of text if unterminated."""
    n = len(text)
    j = start + 1
    while j < n:
        if text[j] == quote:
            if j + 1 < n and text[j + 1] == quote:
                j += 2
                continue
            return j + 1
        j += 1
    return n


class _CanonicalWriter:
    """Accumulates canonical output line by line."""

    def __init__(self, rules: CanonicalizerRules) -> None:
        self.rules = rules
        self.lines: list[str] = []
        self.cur: list[str] = []
        self.cur_content = False
        self.indent = 0
        self.pending_space = False
        self.blank_run = 0
        self.seen_content = False
        self.comma_break = False
        # One entry per open parenthesis: True once a SELECT appeared in it.
        self.frames: list[bool] = []

    # -- line management ----------------------------------------------------

    def end_line(self) -> None:
        if self.cur_content:
            self.lines.append("".join(self.cur))
            self.blank_run = 0
        elif self.seen_content and self.blank_run == 0:
            self.lines.append("")
            self.blank_run = 1
        self.cur = []
        self.cur_content = False
        self.indent = 0
        self.pending_space = False
        self.comma_break = False

    def begin_content(self) -> None:
        if self.comma_break and self.cur_content:
            self.end_line()
            self.indent = self.rules.comma_indent
        self.comma_break = False
        if not self.cur_content:
            if self.indent:
                self.cur.append(" " * self.indent)
        elif self.pending_space:
            self.cur.append(" ")
        self.pending_space = False
        self.cur_content = True
        self.seen_content = True

    def emit(self, token: str) -> None:
        self.begin_content()
        self.cur.append(token)

    def emit_literal(self, literal: str) -> None:
        """Emit verbatim text that may itself contain newlines."""
        self.begin_content()
        first, *rest = literal.split("\n")
        self.cur.append(first)
        for part in rest:
            self.lines.append("".join(self.cur))
            self.blank_run = 0
            self.cur = [part]

    def emit_keyword(self, keyword: str, major: bool) -> None:
        self.comma_break = False
        if self.cur_content:
            self.end_line()
        if major and self.indent == 0 and self.seen_content and self.blank_run == 0:
            self.lines.append("")
            self.blank_run = 1
        self.emit(" ".join(keyword.split()))

    def finish(self) -> str:
        if self.cur_content:
            self.lines.append("".join(self.cur))
        while self.lines and self.lines[-1] == "":
            self.lines.pop()
        if not self.lines:
            return "\n"
        return "\n".join(self.lines) + "\n"

    # -- context ------------------------------------------------------------

    @property
    def in_query_context(self) -> bool:
        """True at statement level or directly inside a query parenthesis."""
        return not self.frames or self.frames[-1]


def _canonicalize_v1(text: str, rules: CanonicalizerRules) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    keyword_re = _keyword_regex(rules.keywords)
    out = _CanonicalWriter(rules)

    n = len(text)
    i = 0
    while i < n:
        ch = text[i]

        if ch == "\n":
            out.end_line()
            i += 1
            continue

        if ch == " " or ch == "\t":
            if out.cur_content:
                out.pending_space = True
            else:
                out.indent += rules.tab_width if ch == "\t" else 1
            i += 1
            continue

        if text.startswith("--", i):
            end = text.find("\n", i)
            end = n if end == -1 else end
            # A trailing comment stays on the line of the comma before it.
            out.comma_break = False
            out.emit(text[i:end])
            i = end
            continue

        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            out.emit_literal(text[i:end])
            i = end
            continue

        if ch == "'" or ch == '"':
            end = _literal_end(text, i, ch)
            out.emit_literal(text[i:end])
            i = end
            continue

        if ch.isalpha() or ch == "_":
            guarded = i > 0 and (text[i - 1].isalnum() or text[i - 1] in _KEYWORD_GUARD)
            match = None if guarded else keyword_re.match(text, i)
            if match is not None:
                keyword = rules.keywords[int(match.lastgroup[1:])]  # type: ignore[index]
                is_select = keyword.name == "SELECT"
                if is_select or out.in_query_context:
                    out.emit_keyword(match.group(0), keyword.major)
                    if is_select and out.frames:
                        out.frames[-1] = True
                    i = match.end()
                    continue
            word = _WORD_RE.match(text, i)
            end = word.end() if word is not None else i + 1
            out.emit(text[i:end])
            i = end
            continue

        out.emit(ch)
        if ch == "(":
            out.frames.append(False)
        elif ch == ")":
            if out.frames:
                out.frames.pop()
        elif ch == ",":
            if out.in_query_context:
                out.comma_break = True
        i += 1

    return out.finish()


@profile_operation("review.canonicalize")
def canonicalize_sql(
    text: str,
    *,
    rules: CanonicalizerRules | None = None,
    version: CanonicalizerVersion | None = None,
) -> str:
    """Return the canonical form of *text* under the given rule-set version.

    Parameters
    ----------
    text:
        Raw SQL text in any line-ending style.  Malformed SQL is accepted.
    rules:
        Tab width, comma indentation and keyword table.  Defaults to
        :data:`DEFAULT_RULES`.
    version:
        Canonicalisation version to use.  Defaults to ``CURRENT_VERSION``.

    Returns
    -------
    str
        Canonical text ending in exactly one newline.  An empty or blank
        input yields ``"\\n"`` (a single blank line).
    """
    if version is None:
        version = CURRENT_VERSION
    if version is not CanonicalizerVersion.V1:
        logger.warning("Unknown canonicalizer version %s; falling back to V1", version)

    return _canonicalize_v1(text, rules or DEFAULT_RULES)


def split_lines(text: str) -> list[str]:
    """Split canonical text into its 1-based document lines.

    The single trailing newline terminates the last line rather than opening
    an extra empty one, so ``"\\n"`` is one blank line and ``"a\\nb\\n"`` is two.
    """
    if text.endswith("\n"):
        text = text[:-1]
    return text.split("\n")


def compute_canonical_hash(
    canonical_old: str,
    canonical_new: str,
    *,
    version: CanonicalizerVersion | None = None,
) -> str:
    """Return a SHA-256 hex digest identifying a canonical document pair.

    The version prefix scopes the digest to the rule-set; the two documents
    are length-prefixed so ``("ab", "c")`` and ``("a", "bc")`` never collide.
    """
    if version is None:
        version = CURRENT_VERSION

    hasher = hashlib.sha256()
    hasher.update(f"sqlreview-canon-{version.value}:".encode())
    for doc in (canonical_old, canonical_new):
        encoded = doc.encode("utf-8")
        hasher.update(f"{len(encoded)}:".encode())
        hasher.update(encoded)
    return hasher.hexdigest()


def get_canonicalizer_version() -> str:
    """Return the current canonicaliser version string."""
    return CURRENT_VERSION.value
