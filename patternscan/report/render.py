"""Render scan reports as text or as structured documents."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from patternscan.core.models import CategoryGuideline, Finding, ScanReport, SignatureFailure
from patternscan.report.schema import FindingRecord, ReportDocument, SignatureFailureRecord
from patternscan.scanner.aggregate import aggregate, group_by_severity, hit_rate, top_files

_RULE = "=" * 60


class ReportFormatError(ValueError):
    """Raised when a report cannot be converted to or from its structured form."""


def _one_line(text: str) -> str:
    return text.replace("\r", "\\r").replace("\n", "\\n")


def _format_counts(counts: Mapping[str, int], indent: str = "  ") -> list[str]:
    if not counts:
        return [f"{indent}(none)"]
    width = max(len(name) for name in counts)
    return [f"{indent}{name.ljust(width)}  {count}" for name, count in counts.items()]


def _format_finding(finding: Finding) -> list[str]:
    lines = [
        f"  {finding.target_path}:{finding.line}:{finding.column}  "
        f"{finding.signature_name or finding.signature_id} ({finding.signature_id})",
        f"    match: {_one_line(finding.matched_text)}",
    ]
    if finding.description:
        lines.append(f"    why:   {finding.description}")
    if finding.recommendation:
        lines.append(f"    fix:   {finding.recommendation}")
    return lines


def _format_failure(failure: SignatureFailure) -> str:
    where = f" on {failure.target_path}" if failure.target_path else ""
    return f"  {failure.signature_id}{where}: {failure.error}"


def to_text(report: ScanReport, *, guidelines: Mapping[str, CategoryGuideline] | None = None) -> str:
    """Human-readable report: totals, summaries, then findings by severity."""
    summary = aggregate(report.findings)
    lines = [
        "patternscan report",
        _RULE,
        f"Timestamp:            {report.timestamp}",
        f"Outcome:              {report.outcome}",
        f"Targets scanned:      {report.targets_scanned}",
        f"Signatures evaluated: {report.signatures_evaluated}",
        f"Signature hit rate:   {hit_rate(summary, report.signatures_evaluated)}%",
        f"Total findings:       {report.total_findings}",
        "",
        "By severity:",
        *_format_counts(report.summary_by_severity),
        "",
        "By category:",
        *_format_counts(report.summary_by_category),
    ]

    busiest = top_files(report.findings)
    if busiest:
        lines += ["", "Top files:", *_format_counts(dict(busiest))]

    for severity, findings in group_by_severity(report.findings).items():
        lines += ["", f"[{severity.upper()}] ({len(findings)})"]
        for finding in findings:
            lines += _format_finding(finding)

    if guidelines:
        relevant = [guidelines[c] for c in report.summary_by_category if c in guidelines]
        if relevant:
            lines += ["", "Remediation guidance:"]
            for guideline in relevant:
                testing = " (testing required)" if guideline.testing_required else ""
                lines.append(f"  {guideline.category} [{guideline.priority}] {guideline.approach}{testing}")

    if report.truncated:
        lines += ["", f"Truncated matches ({len(report.truncated)}):"]
        lines += [f"  {finding_id}" for finding_id in report.truncated]

    if report.signature_errors:
        lines += ["", f"Signature errors ({len(report.signature_errors)}), skipped:"]
        lines += [_format_failure(failure) for failure in report.signature_errors]

    if report.cancelled:
        lines += ["", "Scan was cancelled before all targets were scanned."]

    return "\n".join(lines) + "\n"


def _finding_record(finding: Finding) -> FindingRecord:
    return FindingRecord(
        finding_id=finding.finding_id,
        signature_id=finding.signature_id,
        signature_name=finding.signature_name,
        target_path=finding.target_path,
        line=finding.line,
        column=finding.column,
        offset=finding.offset,
        matched_text=finding.matched_text,
        severity=finding.severity,
        category=finding.category,
        description=finding.description,
        recommendation=finding.recommendation,
        truncated=finding.truncated,
    )


def to_structured(report: ScanReport) -> dict[str, Any]:
    """Field-for-field, JSON-serializable form of *report*.

    Raises :class:`ReportFormatError` when the report holds values the
    document cannot carry, such as a severity from an unchecked catalog.
    """
    try:
        document = _report_document(report)
    except ValidationError as e:
        raise ReportFormatError(f"report cannot be serialized: {e}") from e
    return document.model_dump(by_alias=True)


def _report_document(report: ScanReport) -> ReportDocument:
    return ReportDocument(
        timestamp=report.timestamp,
        targets_scanned=report.targets_scanned,
        signatures_evaluated=report.signatures_evaluated,
        findings=[_finding_record(finding) for finding in report.findings],
        summary_by_category=dict(report.summary_by_category),
        summary_by_severity=dict(report.summary_by_severity),
        signature_errors=[
            SignatureFailureRecord(
                signature_id=failure.signature_id,
                error=failure.error,
                target_path=failure.target_path,
            )
            for failure in report.signature_errors
        ],
        truncated=list(report.truncated),
        cancelled=report.cancelled,
        outcome=report.outcome,
    )


def from_structured(data: Mapping[str, Any]) -> ScanReport:
    """Rebuild a :class:`ScanReport` from :func:`to_structured` output."""
    try:
        document = ReportDocument.model_validate(dict(data))
    except ValidationError as e:
        raise ReportFormatError(f"invalid report document: {e}") from e

    findings = tuple(
        Finding(
            finding_id=record.finding_id,
            signature_id=record.signature_id,
            signature_name=record.signature_name,
            target_path=record.target_path,
            line=record.line,
            column=record.column,
            offset=record.offset,
            matched_text=record.matched_text,
            severity=record.severity,
            category=record.category,
            description=record.description,
            recommendation=record.recommendation,
            truncated=record.truncated,
        )
        for record in document.findings
    )
    summary = aggregate(findings)
    if summary.by_category != document.summary_by_category or summary.by_severity != document.summary_by_severity:
        raise ReportFormatError("report summaries do not match its findings")

    return ScanReport(
        timestamp=document.timestamp,
        targets_scanned=document.targets_scanned,
        signatures_evaluated=document.signatures_evaluated,
        findings=findings,
        summary_by_category=dict(document.summary_by_category),
        summary_by_severity=dict(document.summary_by_severity),
        signature_errors=tuple(
            SignatureFailure(
                signature_id=record.signature_id,
                error=record.error,
                target_path=record.target_path,
            )
            for record in document.signature_errors
        ),
        truncated=tuple(document.truncated),
        cancelled=document.cancelled,
    )


def to_json(report: ScanReport, *, indent: int | None = 2) -> str:
    return json.dumps(to_structured(report), ensure_ascii=False, indent=indent)


def write_report(report: ScanReport, path: Path) -> Path:
    """Write the structured report atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(to_json(report))
    tmp_path.replace(path)
    return path


def read_report(path: Path) -> ScanReport:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ReportFormatError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ReportFormatError(f"{path} must hold a JSON object")
    return from_structured(data)
