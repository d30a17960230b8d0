"""Domain models for signatures, scan targets, findings and reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Severity = Literal["critical", "high", "medium", "low"]
ScanOutcome = Literal["clean", "findings", "degraded", "cancelled"]

SEVERITIES: tuple[Severity, ...] = ("critical", "high", "medium", "low")
SEVERITY_RANK: dict[str, int] = {name: rank for rank, name in enumerate(SEVERITIES)}


def severity_rank(severity: str) -> int:
    """Sort key putting the most urgent severity first."""
    return SEVERITY_RANK.get(severity, len(SEVERITIES))


@dataclass(frozen=True, slots=True, kw_only=True)
class SecuritySignature:
    """One named, immutable regex rule."""

    id: str
    name: str
    pattern: str
    severity: Severity
    category: str
    description: str = ""
    recommendation: str = ""
    flags: str = ""
    source: str = "builtin"


@dataclass(frozen=True, slots=True, kw_only=True)
class CategoryGuideline:
    """Remediation guidance shared by every signature in one category."""

    category: str
    priority: Severity
    approach: str
    testing_required: bool = True


@dataclass(frozen=True, slots=True)
class ScanTarget:
    """One unit of source text handed to the matcher."""

    path: str
    content: str


@dataclass(frozen=True, slots=True, kw_only=True)
class Finding:
    """One signature match inside one target.

    Severity, category and the descriptive signature fields are copied at
    scan time so the finding stays meaningful if the catalog changes later.
    """

    finding_id: str
    signature_id: str
    signature_name: str
    target_path: str
    line: int
    column: int
    offset: int
    matched_text: str
    severity: Severity
    category: str
    description: str = ""
    recommendation: str = ""
    truncated: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class SignatureFailure:
    """A signature that failed while matching and was skipped."""

    signature_id: str
    error: str
    target_path: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ScanSummary:
    """Grouped counts derived from a findings sequence."""

    by_category: dict[str, int] = field(default_factory=dict)
    by_severity: dict[str, int] = field(default_factory=dict)
    signatures_hit: int = 0

    @property
    def total(self) -> int:
        return sum(self.by_severity.values())


@dataclass(frozen=True, slots=True, kw_only=True)
class ScanReport:
    """Aggregate output of one scan run.

    ``findings`` also holds the truncation markers (``truncated=True``) in scan
    order. Markers are not counted: the summaries equal grouping the findings
    that are not markers, and ``truncated`` lists the marker ids.
    """

    timestamp: str
    targets_scanned: int
    signatures_evaluated: int
    findings: tuple[Finding, ...] = ()
    summary_by_category: dict[str, int] = field(default_factory=dict)
    summary_by_severity: dict[str, int] = field(default_factory=dict)
    signature_errors: tuple[SignatureFailure, ...] = ()
    truncated: tuple[str, ...] = ()
    cancelled: bool = False

    @property
    def total_findings(self) -> int:
        return sum(1 for finding in self.findings if not finding.truncated)

    @property
    def outcome(self) -> ScanOutcome:
        """Distinguish a cancelled or degraded run from a complete one."""
        if self.cancelled:
            return "cancelled"
        if self.signature_errors:
            return "degraded"
        if self.total_findings:
            return "findings"
        return "clean"

    def at_or_above(self, threshold: Severity) -> list[Finding]:
        """Findings whose severity is at least as urgent as *threshold*."""
        limit = severity_rank(threshold)
        return [f for f in self.findings if not f.truncated and severity_rank(f.severity) <= limit]
