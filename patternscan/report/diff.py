"""Compare two scan reports: what appeared, what went away, which way it trends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from patternscan.core.models import SEVERITIES, Finding, ScanReport

TrendDirection = Literal["improving", "stable", "degrading"]


@dataclass(frozen=True, slots=True, kw_only=True)
class Trend:
    """One metric compared across two scans. Lower is better for every metric."""

    metric: str
    value: int
    previous_value: int
    direction: TrendDirection
    change_percent: float


@dataclass(frozen=True, slots=True, kw_only=True)
class ReportDiff:
    """Findings keyed by ``finding_id`` across a previous and a current scan."""

    new: tuple[Finding, ...]
    resolved: tuple[Finding, ...]
    persisting: tuple[Finding, ...]
    trends: tuple[Trend, ...]

    @property
    def changed(self) -> bool:
        return bool(self.new or self.resolved)


def _trend(metric: str, value: int, previous: int) -> Trend:
    if value < previous:
        direction: TrendDirection = "improving"
    elif value > previous:
        direction = "degrading"
    else:
        direction = "stable"
    change = round((value - previous) / previous * 100, 1) if previous > 0 else 0.0
    return Trend(metric=metric, value=value, previous_value=previous, direction=direction, change_percent=change)


def diff_reports(previous: ScanReport, current: ScanReport) -> ReportDiff:
    """Diff two reports. Output keeps each report's own finding order."""
    before = {f.finding_id: f for f in previous.findings if not f.truncated}
    after = {f.finding_id: f for f in current.findings if not f.truncated}

    new = tuple(f for fid, f in after.items() if fid not in before)
    resolved = tuple(f for fid, f in before.items() if fid not in after)
    persisting = tuple(f for fid, f in after.items() if fid in before)

    trends = [_trend("total_findings", current.total_findings, previous.total_findings)]
    for severity in SEVERITIES:
        trends.append(
            _trend(
                f"{severity}_findings",
                current.summary_by_severity.get(severity, 0),
                previous.summary_by_severity.get(severity, 0),
            )
        )
    trends.append(_trend("signature_errors", len(current.signature_errors), len(previous.signature_errors)))
    return ReportDiff(new=new, resolved=resolved, persisting=persisting, trends=tuple(trends))
