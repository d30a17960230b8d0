"""Matching and aggregation over scan targets."""

from patternscan.scanner.aggregate import aggregate, group_by_severity, hit_rate, top_files
from patternscan.scanner.matcher import Matcher, SignatureRuntimeError, scan

__all__ = [
    "Matcher",
    "SignatureRuntimeError",
    "aggregate",
    "group_by_severity",
    "hit_rate",
    "scan",
    "top_files",
]
