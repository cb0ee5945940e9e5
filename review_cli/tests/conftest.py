"""Shared fixtures for CLI tests.

Each CLI invocation reconfigures the ``review_engine`` logger and may clear
the profiling collector; both are process-wide, so they are restored around
every test.
"""

from __future__ import annotations

import logging

import pytest

from review_engine.telemetry.profiling import ProfileCollector


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch):
    for name in ("SQLREVIEW_MAX_DOCUMENT_CHARS", "SQLREVIEW_MIN_RUN_LENGTH", "SQLREVIEW_STRUCTURED_LOGGING"):
        monkeypatch.delenv(name, raising=False)

    root = logging.getLogger("review_engine")
    handlers = list(root.handlers)
    level = root.level
    propagate = root.propagate
    ProfileCollector.reset()
    yield
    ProfileCollector.reset()
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate
