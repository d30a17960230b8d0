import dataclasses
import json
from pathlib import Path

import pytest

from patternscan.catalog.catalog import Catalog, load
from patternscan.catalog.loader import default_catalog
from patternscan.core.models import Finding, ScanReport, ScanTarget, SecuritySignature, SignatureFailure
from patternscan.report.diff import diff_reports
from patternscan.report.render import (
    ReportFormatError,
    from_structured,
    read_report,
    to_structured,
    to_text,
    write_report,
)
from patternscan.scanner.aggregate import aggregate, group_by_severity, hit_rate, top_files
from patternscan.scanner.matcher import Matcher, scan

SIGNATURES = [
    {
        "id": "inner-html",
        "name": "Direct innerHTML Usage",
        "pattern": r"innerHTML\s*=",
        "severity": "high",
        "category": "xss-vulnerability",
        "description": "Unsanitized HTML",
        "recommendation": "Use DOMPurify.sanitize()",
    },
    {
        "id": "eval-usage",
        "name": "Eval Usage",
        "pattern": r"eval\(",
        "severity": "critical",
        "category": "code-injection",
        "description": "eval runs arbitrary code",
        "recommendation": "Replace eval()",
    },
    {
        "id": "random",
        "name": "Insecure Random",
        "pattern": r"Math\.random\(\)",
        "severity": "medium",
        "category": "cryptographic-weakness",
    },
]


def _finding(fid: str, severity: str = "high", category: str = "xss-vulnerability", path: str = "a.js") -> Finding:
    return Finding(
        finding_id=fid,
        signature_id=fid.split("#")[1] if "#" in fid else fid,
        signature_name="Sig",
        target_path=path,
        line=1,
        column=1,
        offset=0,
        matched_text="x",
        severity=severity,
        category=category,
    )


def _report(findings: list[Finding], errors: tuple[SignatureFailure, ...] = ()) -> ScanReport:
    summary = aggregate(findings)
    return ScanReport(
        timestamp="2026-01-01T00:00:00+00:00",
        targets_scanned=1,
        signatures_evaluated=3,
        findings=tuple(findings),
        summary_by_category=summary.by_category,
        summary_by_severity=summary.by_severity,
        signature_errors=errors,
    )


@pytest.fixture
def sample_report() -> ScanReport:
    catalog = load(SIGNATURES)
    return scan(
        catalog,
        [
            ScanTarget("web/a.js", "el.innerHTML = x;\neval(a);\n"),
            ScanTarget("web/b.js", "eval(b); Math.random();"),
        ],
    )


def test_aggregate_orders_severity_by_urgency_and_category_by_first_seen() -> None:
    findings = [
        _finding("a#low", severity="low", category="type-safety"),
        _finding("a#crit", severity="critical", category="data-leak"),
        _finding("a#high", severity="high", category="type-safety"),
    ]
    summary = aggregate(findings)
    assert list(summary.by_severity) == ["critical", "high", "low"]
    assert list(summary.by_category) == ["type-safety", "data-leak"]
    assert summary.by_category == {"type-safety": 2, "data-leak": 1}
    assert summary.signatures_hit == 3
    assert summary.total == 3


def test_aggregate_ignores_truncation_markers() -> None:
    marker = dataclasses.replace(_finding("a#x#truncated"), truncated=True)
    summary = aggregate([_finding("a#x#0"), marker])
    assert summary.by_severity == {"high": 1}


def test_summaries_match_grouped_findings(sample_report: ScanReport) -> None:
    by_severity: dict[str, int] = {}
    for finding in sample_report.findings:
        by_severity[finding.severity] = by_severity.get(finding.severity, 0) + 1
    assert sample_report.summary_by_severity == by_severity
    assert list(sample_report.summary_by_severity) == ["critical", "high", "medium"]
    assert sample_report.summary_by_category == {
        "xss-vulnerability": 1,
        "code-injection": 2,
        "cryptographic-weakness": 1,
    }


def test_hit_rate_and_top_files(sample_report: ScanReport) -> None:
    summary = aggregate(sample_report.findings)
    assert hit_rate(summary, sample_report.signatures_evaluated) == 100.0
    assert hit_rate(summary, 0) == 0.0
    assert top_files(sample_report.findings) == [("web/a.js", 2), ("web/b.js", 2)]
    assert top_files(sample_report.findings, limit=1) == [("web/a.js", 2)]


def test_group_by_severity_puts_critical_first(sample_report: ScanReport) -> None:
    groups = group_by_severity(sample_report.findings)
    assert list(groups) == ["critical", "high", "medium"]
    assert len(groups["critical"]) == 2


def test_text_report_lists_findings_by_severity(sample_report: ScanReport) -> None:
    text = to_text(sample_report)
    assert "Targets scanned:      2" in text
    assert "Total findings:       4" in text
    assert text.index("[CRITICAL] (2)") < text.index("[HIGH] (1)") < text.index("[MEDIUM] (1)")
    assert "web/a.js:2:1  Eval Usage (eval-usage)" in text
    assert "web/a.js:1:4  Direct innerHTML Usage (inner-html)" in text
    assert "why:   eval runs arbitrary code" in text
    assert "fix:   Replace eval()" in text
    assert "Signature errors" not in text


def test_text_report_shows_guidelines_and_errors() -> None:
    catalog = default_catalog()
    report = _report(
        [_finding("a.js#k#0", severity="critical", category="credential-exposure")],
        errors=(SignatureFailure(signature_id="bad", error="RuntimeError: boom", target_path="a.js"),),
    )
    text = to_text(report, guidelines=catalog.guidelines)
    assert "Remediation guidance:" in text
    assert "credential-exposure [critical] Environment variable migration" in text
    assert "Signature errors (1), skipped:" in text
    assert "bad on a.js: RuntimeError: boom" in text
    assert "Outcome:              degraded" in text


def test_structured_report_uses_camel_case(sample_report: ScanReport) -> None:
    data = to_structured(sample_report)
    assert data["targetsScanned"] == 2
    assert data["signaturesEvaluated"] == 3
    assert data["summaryBySeverity"] == {"critical": 2, "high": 1, "medium": 1}
    first = data["findings"][0]
    assert first["findingId"] == "web/a.js#inner-html#0"
    assert first["targetPath"] == "web/a.js"
    assert data["outcome"] == "findings"


def test_structured_report_round_trips_through_json(sample_report: ScanReport) -> None:
    payload = json.loads(json.dumps(to_structured(sample_report)))
    rebuilt = from_structured(payload)
    assert rebuilt == sample_report
    assert rebuilt.timestamp == sample_report.timestamp


def test_round_trip_keeps_errors_and_markers() -> None:
    catalog = load([dict(SIGNATURES[1], id="e", pattern="e")])
    report = Matcher(max_matches_per_signature=1).scan(catalog, [ScanTarget("f", "eee")])
    report = dataclasses.replace(
        report, signature_errors=(SignatureFailure(signature_id="z", error="boom"),)
    )
    rebuilt = from_structured(to_structured(report))
    assert rebuilt == report
    assert rebuilt.truncated == ("f#e#truncated",)


def test_tampered_summary_is_rejected(sample_report: ScanReport) -> None:
    data = to_structured(sample_report)
    data["summaryBySeverity"]["critical"] = 99
    with pytest.raises(ReportFormatError):
        from_structured(data)


def test_invalid_document_is_rejected() -> None:
    with pytest.raises(ReportFormatError):
        from_structured({"timestamp": "t"})


def test_report_file_round_trip(tmp_path: Path, sample_report: ScanReport) -> None:
    path = write_report(sample_report, tmp_path / "out" / "report.json")
    assert read_report(path) == sample_report


def test_diff_reports_tracks_new_and_resolved() -> None:
    previous = _report(
        [
            _finding("a.js#eval#0", severity="critical"),
            _finding("a.js#html#0"),
        ]
    )
    current = _report(
        [
            _finding("a.js#html#0"),
            _finding("b.js#html#0", path="b.js"),
        ]
    )
    result = diff_reports(previous, current)
    assert [f.finding_id for f in result.new] == ["b.js#html#0"]
    assert [f.finding_id for f in result.resolved] == ["a.js#eval#0"]
    assert [f.finding_id for f in result.persisting] == ["a.js#html#0"]
    assert result.changed is True

    trends = {t.metric: t for t in result.trends}
    assert trends["total_findings"].direction == "stable"
    assert trends["critical_findings"].direction == "improving"
    assert trends["critical_findings"].change_percent == -100.0
    assert trends["high_findings"].direction == "degrading"
    assert trends["high_findings"].change_percent == 100.0
    assert trends["low_findings"].change_percent == 0.0


def test_diff_of_identical_reports_is_unchanged(sample_report: ScanReport) -> None:
    result = diff_reports(sample_report, sample_report)
    assert not result.changed
    assert len(result.persisting) == sample_report.total_findings
    assert all(t.direction == "stable" for t in result.trends)


def test_summaries_equal_grouping_of_non_marker_findings() -> None:
    catalog = load([dict(SIGNATURES[1], id="e", pattern="e")])
    report = Matcher(max_matches_per_signature=2).scan(catalog, [ScanTarget("f", "eeee"), ScanTarget("g", "e")])
    counted = [f for f in report.findings if not f.truncated]
    markers = [f for f in report.findings if f.truncated]
    assert [f.finding_id for f in markers] == list(report.truncated) == ["f#e#truncated"]
    assert report.summary_by_severity == {"critical": len(counted)} == {"critical": 3}
    assert report.summary_by_category == {"code-injection": 3}


def test_unserializable_report_raises_format_error() -> None:
    odd = SecuritySignature(id="odd", name="Odd", pattern="odd", severity="urgent", category="misc")  # type: ignore[arg-type]
    report = scan(Catalog.unchecked([odd]), [ScanTarget("a", "odd")])
    with pytest.raises(ReportFormatError):
        to_structured(report)
