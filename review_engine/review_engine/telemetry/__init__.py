"""Runtime timing for engine operations."""

from review_engine.telemetry.profiling import ProfileCollector, ProfileSample, profile_operation

__all__ = [
    "ProfileCollector",
    "ProfileSample",
    "profile_operation",
]
