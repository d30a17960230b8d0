"""Grouping and counting over findings."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from patternscan.core.models import SEVERITIES, Finding, ScanSummary, severity_rank


def aggregate(findings: Iterable[Finding]) -> ScanSummary:
    """Count findings per category and per severity.

    Severities come out in urgency order (critical first). Categories keep
    the order of their first occurrence in *findings*. Truncation markers
    are not counted.
    """
    by_category: dict[str, int] = {}
    severity_counts: Counter[str] = Counter()
    hit: set[str] = set()
    for finding in findings:
        if finding.truncated:
            continue
        by_category[finding.category] = by_category.get(finding.category, 0) + 1
        severity_counts[finding.severity] += 1
        hit.add(finding.signature_id)

    by_severity = {
        severity: severity_counts[severity]
        for severity in sorted(severity_counts, key=severity_rank)
    }
    return ScanSummary(by_category=by_category, by_severity=by_severity, signatures_hit=len(hit))


def hit_rate(summary: ScanSummary, signatures_evaluated: int) -> float:
    """Percentage of evaluated signatures that produced at least one finding."""
    if signatures_evaluated <= 0:
        return 0.0
    return round(summary.signatures_hit / signatures_evaluated * 100, 1)


def group_by_severity(findings: Iterable[Finding]) -> dict[str, list[Finding]]:
    """Bucket findings by severity, most urgent bucket first, empty buckets dropped."""
    buckets: dict[str, list[Finding]] = {severity: [] for severity in SEVERITIES}
    for finding in findings:
        if finding.truncated:
            continue
        buckets.setdefault(finding.severity, []).append(finding)
    return {severity: items for severity, items in buckets.items() if items}


def top_files(findings: Iterable[Finding], limit: int = 5) -> list[tuple[str, int]]:
    """Paths with the most findings; ties keep first-appearance order."""
    counts: dict[str, int] = {}
    for finding in findings:
        if finding.truncated:
            continue
        counts[finding.target_path] = counts.get(finding.target_path, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return ranked[: max(0, limit)]
