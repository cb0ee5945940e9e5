"""Request-level orchestration of a document comparison.

:func:`review_documents` is what a request handler calls with two raw
documents: it enforces the size limits the engine leaves to its caller,
runs canonicalise -> diff -> segment -> group, trims the group list and
memoises the report in an optional injected :class:`ComparisonCache`.

:func:`paginate_groups` and :func:`merge_explanations` are the two halves of
the explainer hand-off: groups go out in bounded batches and the returned
explanations are joined back onto the groups by index.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from review_engine.config import Settings, load_settings
from review_engine.diff.line_diff import diff_documents
from review_engine.grouping.grouper import group_changes
from review_engine.models.changes import ChangeGroup, GroupingParams
from review_engine.models.review import NO_EXPLANATION, ChangePage, ExplainedChange, ReviewReport
from review_engine.parser.canonicalizer import (
    CanonicalizerRules,
    canonicalize_sql,
    get_canonicalizer_version,
    split_lines,
)
from review_engine.parser.segmenter import segment_document
from review_engine.review.cache import ComparisonCache
from review_engine.review.errors import DocumentTooLargeError

logger = logging.getLogger(__name__)


def _check_chars(side: str, text: str, limit: int) -> None:
    if len(text) > limit:
        raise DocumentTooLargeError(side, len(text), limit)


def _check_lines(side: str, lines: Sequence[str], limit: int) -> None:
    if len(lines) > limit:
        raise DocumentTooLargeError(side, len(lines), limit, unit="lines")


def review_documents(
    old_raw: str,
    new_raw: str,
    *,
    settings: Settings | None = None,
    params: GroupingParams | None = None,
    cache: ComparisonCache | None = None,
) -> ReviewReport:
    """Compare two raw SQL documents and return the grouped changes.

    Parameters
    ----------
    old_raw, new_raw:
        The documents as submitted, in any line-ending style.
    settings:
        Limits and defaults.  Loaded from the environment when omitted.
    params:
        Grouping tunables overriding the ones from *settings*.
    cache:
        Optional result cache.  Hits return the stored report with
        ``cached=True``.

    Raises
    ------
    DocumentTooLargeError
        If either document exceeds ``max_document_chars`` before, or
        ``max_document_lines`` after, canonicalisation.
    """
    settings = settings or load_settings()
    params = params.clamped() if params is not None else settings.grouping_params()

    _check_chars("old", old_raw, settings.max_document_chars)
    _check_chars("new", new_raw, settings.max_document_chars)

    rules = CanonicalizerRules(tab_width=settings.tab_width)
    canonical_old = canonicalize_sql(old_raw, rules=rules)
    canonical_new = canonicalize_sql(new_raw, rules=rules)
    old_lines = split_lines(canonical_old)
    new_lines = split_lines(canonical_new)
    _check_lines("old", old_lines, settings.max_document_lines)
    _check_lines("new", new_lines, settings.max_document_lines)

    version = get_canonicalizer_version()
    key = ComparisonCache.make_key(canonical_old, canonical_new, params, version)
    if cache is not None:
        hit = cache.get(key)
        if hit is not None:
            return hit.model_copy(update={"cached": True})

    comparison = diff_documents(canonical_old, canonical_new)
    groups = group_changes(
        comparison.ops,
        segment_document(old_lines),
        segment_document(new_lines),
        params=params,
    )

    total = len(groups)
    truncated = total > settings.max_groups
    if truncated:
        logger.info("Trimming %d change groups to %d", total, settings.max_groups)
        groups = groups[: settings.max_groups]

    report = ReviewReport(
        canonical_old=canonical_old,
        canonical_new=canonical_new,
        comparison=comparison,
        groups=groups,
        total_groups=total,
        truncated=truncated,
        cache_key=key,
        canonicalizer_version=version,
    )
    if cache is not None:
        cache.put(key, report)

    logger.debug(
        "Review completed",
        extra={
            "review": {
                "old_lines": len(old_lines),
                "new_lines": len(new_lines),
                "groups": total,
                "truncated": truncated,
            }
        },
    )
    return report


def paginate_groups(
    groups: Sequence[ChangeGroup],
    cursor: int = 0,
    limit: int | None = None,
    *,
    settings: Settings | None = None,
) -> ChangePage:
    """Return the batch of groups starting at *cursor*.

    *limit* defaults to ``settings.explain_page_size``.  ``next_cursor`` is
    ``None`` on the last page.  A negative cursor is treated as 0 and a
    limit below 1 as 1.
    """
    if limit is None:
        limit = (settings or load_settings()).explain_page_size
    cursor = max(0, cursor)
    limit = max(1, limit)
    items = list(groups[cursor : cursor + limit])
    end = cursor + len(items)
    return ChangePage(
        items=items,
        next_cursor=end if end < len(groups) else None,
        total=len(groups),
    )


def merge_explanations(
    groups: Sequence[ChangeGroup],
    explanations: Mapping[int, str],
) -> list[ExplainedChange]:
    """Attach explainer output to groups by ``index``.

    Groups without an entry, or with a blank one, get a fixed placeholder.
    Entries for unknown indices are ignored.
    """
    known = {group.index for group in groups}
    stray = sorted(set(explanations) - known)
    if stray:
        logger.debug("Ignoring explanations for unknown group indices %s", stray)

    merged: list[ExplainedChange] = []
    for group in groups:
        text = (explanations.get(group.index) or "").strip()
        merged.append(ExplainedChange(group=group, explanation=text or NO_EXPLANATION))
    return merged
