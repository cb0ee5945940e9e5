"""Logging setup for the review engine and its front ends.

Two output shapes are supported:

* plain text (default) -- ``LEVEL logger: message``, for terminals;
* single-line JSON (``SQLREVIEW_STRUCTURED_LOGGING=true``) for log
  aggregators that index fields without regex parsing.

Output schema per JSON line::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "review_engine.review.pipeline",
        "message": "review completed",
        "review": { ... },          // present when emitted with extra={"review": ...}
        "exc_info": "Traceback ..." // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from review_engine.config import Settings

_ROOT_LOGGER = "review_engine"
_TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        review_data = getattr(record, "review", None)
        if review_data is not None:
            payload["review"] = review_data

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(
    settings: Settings,
    *,
    stream: TextIO | None = None,
    level: str | None = None,
) -> logging.Logger:
    """Install a single handler on the ``review_engine`` logger.

    Calling this repeatedly replaces the previous handler instead of stacking
    duplicates, so CLI invocations in the same process (tests) stay quiet.
    """
    root = logging.getLogger(_ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())
    root.propagate = False
    return root
