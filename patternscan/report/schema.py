"""Structured report document schema (camelCase on the wire)."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SeverityName = Literal["critical", "high", "medium", "low"]


class ReportModel(BaseModel):
    """Base model with strict document parsing."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class FindingRecord(ReportModel):
    """One serialized finding."""

    finding_id: str = Field(alias="findingId")
    signature_id: str = Field(alias="signatureId")
    signature_name: str = Field(default="", alias="signatureName")
    target_path: str = Field(alias="targetPath")
    line: int = Field(ge=1)
    column: int = Field(ge=1)
    offset: int = Field(default=0, ge=0)
    matched_text: str = Field(default="", alias="matchedText")
    severity: SeverityName
    category: str
    description: str = ""
    recommendation: str = ""
    truncated: bool = False


class SignatureFailureRecord(ReportModel):
    """One serialized signature runtime failure."""

    signature_id: str = Field(alias="signatureId")
    error: str
    target_path: str | None = Field(default=None, alias="targetPath")


class ReportDocument(ReportModel):
    """Root structured report."""

    format_version: int = Field(default=1, alias="formatVersion")
    timestamp: str
    targets_scanned: int = Field(alias="targetsScanned", ge=0)
    signatures_evaluated: int = Field(alias="signaturesEvaluated", ge=0)
    findings: list[FindingRecord] = Field(default_factory=list)
    summary_by_category: dict[str, int] = Field(default_factory=dict, alias="summaryByCategory")
    summary_by_severity: dict[str, int] = Field(default_factory=dict, alias="summaryBySeverity")
    signature_errors: list[SignatureFailureRecord] = Field(default_factory=list, alias="signatureErrors")
    truncated: list[str] = Field(default_factory=list)
    cancelled: bool = False
    outcome: Literal["clean", "findings", "degraded", "cancelled"] | None = None
