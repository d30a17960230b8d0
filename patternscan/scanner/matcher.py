"""Apply a signature catalog to scan targets and collect findings."""

from __future__ import annotations

import asyncio
import re
import time
from bisect import bisect_right
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger

from patternscan.catalog.catalog import Catalog, compile_signature
from patternscan.core.models import Finding, ScanReport, ScanTarget, SecuritySignature, SignatureFailure
from patternscan.core.ports import CancelSignal, TelemetryPort
from patternscan.scanner.aggregate import aggregate

if TYPE_CHECKING:
    from patternscan.config.schema import ScannerConfig

DEFAULT_MAX_MATCHES = 10_000
DEFAULT_MAX_MATCHED_TEXT_CHARS = 200
DEFAULT_CONCURRENCY = 4

_Compiled = list[tuple[SecuritySignature, re.Pattern[str]]]


class SignatureRuntimeError(RuntimeError):
    """A signature failed while matching. Recovered per signature, never fatal."""

    def __init__(self, signature_id: str, error: BaseException, target_path: str | None = None):
        self.signature_id = signature_id
        self.target_path = target_path
        self.error = error
        where = f" on {target_path}" if target_path else ""
        super().__init__(f"signature {signature_id!r} failed{where}: {error}")

    def to_failure(self) -> SignatureFailure:
        return SignatureFailure(
            signature_id=self.signature_id,
            target_path=self.target_path,
            error=f"{type(self.error).__name__}: {self.error}",
        )


@dataclass(slots=True)
class _TargetResult:
    findings: list[Finding] = field(default_factory=list)
    failures: list[SignatureFailure] = field(default_factory=list)
    truncated: list[str] = field(default_factory=list)


class _LineIndex:
    """Offsets of line starts for one text, for 1-based line/column lookup."""

    __slots__ = ("_starts",)

    def __init__(self, content: str) -> None:
        starts = [0]
        pos = content.find("\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = content.find("\n", pos + 1)
        self._starts = starts

    def locate(self, offset: int) -> tuple[int, int]:
        index = bisect_right(self._starts, offset) - 1
        return index + 1, offset - self._starts[index] + 1


def _iter_matches(pattern: re.Pattern[str], content: str) -> Iterator[re.Match[str]]:
    return pattern.finditer(content)


class Matcher:
    """Stateless signature matcher.

    One instance can serve many scans; the catalog is only read, so it is
    safe to share across worker threads.
    """

    def __init__(
        self,
        *,
        max_matches_per_signature: int = DEFAULT_MAX_MATCHES,
        max_matched_text_chars: int = DEFAULT_MAX_MATCHED_TEXT_CHARS,
        concurrency: int = DEFAULT_CONCURRENCY,
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self._max_matches = max(1, int(max_matches_per_signature))
        self._max_text = max(1, int(max_matched_text_chars))
        self._concurrency = max(1, int(concurrency))
        self._telemetry = telemetry

    @classmethod
    def from_config(cls, config: "ScannerConfig", *, telemetry: TelemetryPort | None = None) -> Matcher:
        return cls(
            max_matches_per_signature=config.max_matches_per_signature,
            max_matched_text_chars=config.max_matched_text_chars,
            concurrency=config.concurrency,
            telemetry=telemetry,
        )

    def scan(
        self,
        catalog: Catalog,
        targets: Iterable[ScanTarget],
        *,
        cancel: CancelSignal | None = None,
    ) -> ScanReport:
        """Scan targets one after another.

        *cancel* is checked before each target; a target is either fully
        scanned or skipped.
        """
        started = time.monotonic()
        compiled, failures = self._prepare(catalog)
        results: list[_TargetResult] = []
        cancelled = False
        for target in targets:
            if cancel is not None and cancel.is_set():
                cancelled = True
                break
            results.append(self._scan_target(compiled, target))
        return self._build_report(catalog, results, failures, cancelled=cancelled, started=started)

    async def scan_async(
        self,
        catalog: Catalog,
        targets: Sequence[ScanTarget],
        *,
        cancel: CancelSignal | None = None,
    ) -> ScanReport:
        """Scan targets in worker threads, at most ``concurrency`` at a time.

        Results are merged in target order, so the report is identical to
        the one :meth:`scan` produces for the same input.
        """
        started = time.monotonic()
        compiled, failures = self._prepare(catalog)
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run(target: ScanTarget) -> _TargetResult | None:
            async with semaphore:
                if cancel is not None and cancel.is_set():
                    return None
                return await asyncio.to_thread(self._scan_target, compiled, target)

        outcomes = await asyncio.gather(*(run(target) for target in targets))
        results = [result for result in outcomes if result is not None]
        cancelled = len(results) < len(outcomes)
        return self._build_report(catalog, results, failures, cancelled=cancelled, started=started)

    def scan_target(self, catalog: Catalog, target: ScanTarget) -> list[Finding]:
        """Findings for a single target, without building a report."""
        compiled, _ = self._prepare(catalog)
        return self._scan_target(compiled, target).findings

    def _prepare(self, catalog: Catalog) -> tuple[_Compiled, list[SignatureFailure]]:
        compiled: _Compiled = []
        failures: list[SignatureFailure] = []
        for signature in catalog.all():
            try:
                compiled.append((signature, compile_signature(signature)))
            except (re.error, ValueError) as e:
                failure = SignatureRuntimeError(signature.id, e).to_failure()
                logger.warning("signature_error id={} stage=compile error={}", signature.id, failure.error)
                failures.append(failure)
        return compiled, failures

    def _scan_target(self, compiled: _Compiled, target: ScanTarget) -> _TargetResult:
        result = _TargetResult()
        lines = _LineIndex(target.content)
        for signature, pattern in compiled:
            try:
                findings, marker = self._match_signature(signature, pattern, target, lines)
            except SignatureRuntimeError as e:
                logger.warning(
                    "signature_error id={} target={} error={}",
                    e.signature_id,
                    e.target_path,
                    e.error,
                )
                result.failures.append(e.to_failure())
                continue
            result.findings.extend(findings)
            if marker is not None:
                result.findings.append(marker)
                result.truncated.append(marker.finding_id)
        logger.debug("scan_target path={} findings={}", target.path, len(result.findings))
        return result

    def _match_signature(
        self,
        signature: SecuritySignature,
        pattern: re.Pattern[str],
        target: ScanTarget,
        lines: _LineIndex,
    ) -> tuple[list[Finding], Finding | None]:
        findings: list[Finding] = []
        try:
            for match in _iter_matches(pattern, target.content):
                if match.end() == match.start():
                    continue
                if len(findings) >= self._max_matches:
                    logger.warning(
                        "match_cap_reached id={} target={} cap={}",
                        signature.id,
                        target.path,
                        self._max_matches,
                    )
                    marker = self._finding(signature, target, lines, match, occurrence=None)
                    return findings, marker
                findings.append(self._finding(signature, target, lines, match, occurrence=len(findings)))
        except Exception as e:
            raise SignatureRuntimeError(signature.id, e, target.path) from e
        return findings, None

    def _finding(
        self,
        signature: SecuritySignature,
        target: ScanTarget,
        lines: _LineIndex,
        match: re.Match[str],
        *,
        occurrence: int | None,
    ) -> Finding:
        offset = match.start()
        line, column = lines.locate(offset)
        truncated = occurrence is None
        suffix = "truncated" if truncated else str(occurrence)
        return Finding(
            finding_id=f"{target.path}#{signature.id}#{suffix}",
            signature_id=signature.id,
            signature_name=signature.name,
            target_path=target.path,
            line=line,
            column=column,
            offset=offset,
            matched_text="" if truncated else match.group(0)[: self._max_text],
            severity=signature.severity,
            category=signature.category,
            description=signature.description,
            recommendation=signature.recommendation,
            truncated=truncated,
        )

    def _build_report(
        self,
        catalog: Catalog,
        results: list[_TargetResult],
        failures: list[SignatureFailure],
        *,
        cancelled: bool,
        started: float,
    ) -> ScanReport:
        findings = [finding for result in results for finding in result.findings]
        errors = list(failures)
        truncated: list[str] = []
        for result in results:
            errors.extend(result.failures)
            truncated.extend(result.truncated)
        summary = aggregate(findings)
        report = ScanReport(
            timestamp=datetime.now(UTC).isoformat(),
            targets_scanned=len(results),
            signatures_evaluated=len(catalog),
            findings=tuple(findings),
            summary_by_category=summary.by_category,
            summary_by_severity=summary.by_severity,
            signature_errors=tuple(errors),
            truncated=tuple(truncated),
            cancelled=cancelled,
        )
        elapsed = time.monotonic() - started
        if self._telemetry is not None:
            self._telemetry.incr("scan.targets", report.targets_scanned)
            self._telemetry.incr("scan.findings", report.total_findings)
            self._telemetry.incr("scan.signature_errors", len(errors))
            self._telemetry.timing("scan.duration", elapsed)
        logger.info(
            "scan_complete targets={} signatures={} findings={} errors={} cancelled={} elapsed={:.3f}s",
            report.targets_scanned,
            report.signatures_evaluated,
            report.total_findings,
            len(errors),
            cancelled,
            elapsed,
        )
        return report


def scan(
    catalog: Catalog,
    targets: Iterable[ScanTarget],
    *,
    cancel: CancelSignal | None = None,
    max_matches_per_signature: int = DEFAULT_MAX_MATCHES,
) -> ScanReport:
    """Scan *targets* with a default-configured :class:`Matcher`."""
    matcher = Matcher(max_matches_per_signature=max_matches_per_signature)
    return matcher.scan(catalog, targets, cancel=cancel)
