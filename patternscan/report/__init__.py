"""Report rendering and comparison."""

from patternscan.report.diff import ReportDiff, Trend, diff_reports
from patternscan.report.render import (
    ReportFormatError,
    from_structured,
    read_report,
    to_json,
    to_structured,
    to_text,
    write_report,
)

__all__ = [
    "ReportDiff",
    "ReportFormatError",
    "Trend",
    "diff_reports",
    "from_structured",
    "read_report",
    "to_json",
    "to_structured",
    "to_text",
    "write_report",
]
