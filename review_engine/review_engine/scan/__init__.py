"""Static scans over SQL text."""

from review_engine.scan.hardcode import Finding, ScanMode, ScanResult, Severity, scan_hardcoded, scan_line

__all__ = [
    "Finding",
    "ScanMode",
    "ScanResult",
    "Severity",
    "scan_hardcoded",
    "scan_line",
]
