"""Immutable signature catalog and its load-time validation."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import ValidationError

from patternscan.catalog.defaults import DEFAULT_CATEGORIES
from patternscan.catalog.schema import CatalogDocument, SignatureDocument
from patternscan.core.models import SEVERITIES, CategoryGuideline, SecuritySignature

_FLAG_BITS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


@dataclass(frozen=True, slots=True)
class CatalogProblem:
    """One validation problem found while loading a catalog."""

    index: int | None
    signature_id: str
    message: str

    def __str__(self) -> str:
        where = f"signatures[{self.index}]" if self.index is not None else "catalog"
        label = f" ({self.signature_id})" if self.signature_id else ""
        return f"{where}{label}: {self.message}"


class CatalogError(ValueError):
    """Raised when a catalog definition is invalid. Lists every problem."""

    def __init__(self, problems: Sequence[CatalogProblem]):
        self.problems = list(problems)
        lines = "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(f"catalog has {len(self.problems)} problem(s):\n{lines}")


def regex_flags(flags: str) -> re.RegexFlag:
    """Translate JS-style flag letters (``"im"``) into ``re`` flags."""
    bits = re.RegexFlag(0)
    for letter in flags:
        if letter not in _FLAG_BITS:
            raise ValueError(f"unknown regex flag {letter!r} (allowed: {''.join(_FLAG_BITS)})")
        bits |= _FLAG_BITS[letter]
    return bits


def compile_signature(signature: SecuritySignature) -> re.Pattern[str]:
    """Compile the signature pattern with its flags."""
    return re.compile(signature.pattern, regex_flags(signature.flags))


class Catalog:
    """Ordered, read-only collection of signatures.

    Build one through :func:`load`. Reloading means building a new catalog
    and swapping the reference; instances are never mutated.
    """

    __slots__ = ("_signatures", "_by_id", "_guidelines", "_categories")

    def __init__(
        self,
        signatures: Iterable[SecuritySignature],
        *,
        guidelines: Mapping[str, CategoryGuideline] | None = None,
        categories: Iterable[str] | None = None,
    ) -> None:
        self._signatures = tuple(signatures)
        self._by_id = {sig.id: sig for sig in self._signatures}
        self._guidelines = dict(guidelines or {})
        self._categories = tuple(categories) if categories is not None else DEFAULT_CATEGORIES

    @classmethod
    def unchecked(
        cls,
        signatures: Iterable[SecuritySignature],
        *,
        guidelines: Mapping[str, CategoryGuideline] | None = None,
    ) -> Catalog:
        """Build a catalog without validation. The matcher still isolates bad signatures."""
        return cls(signatures, guidelines=guidelines)

    def all(self) -> tuple[SecuritySignature, ...]:
        """Signatures in declaration order."""
        return self._signatures

    def by_category(self, category: str) -> tuple[SecuritySignature, ...]:
        return tuple(sig for sig in self._signatures if sig.category == category)

    def by_severity(self, severity: str) -> tuple[SecuritySignature, ...]:
        return tuple(sig for sig in self._signatures if sig.severity == severity)

    def get(self, signature_id: str) -> SecuritySignature | None:
        return self._by_id.get(signature_id)

    def guideline(self, category: str) -> CategoryGuideline | None:
        return self._guidelines.get(category)

    @property
    def guidelines(self) -> dict[str, CategoryGuideline]:
        return dict(self._guidelines)

    @property
    def categories(self) -> tuple[str, ...]:
        return self._categories

    def __len__(self) -> int:
        return len(self._signatures)

    def __iter__(self) -> Iterator[SecuritySignature]:
        return iter(self._signatures)

    def __contains__(self, signature_id: object) -> bool:
        return signature_id in self._by_id

    def __repr__(self) -> str:
        return f"Catalog(signatures={len(self._signatures)}, categories={len(self._categories)})"


def _source_mapping(source: Any) -> Mapping[str, Any]:
    if isinstance(source, CatalogDocument):
        return source.model_dump()
    if isinstance(source, Catalog):
        return {
            "categories": list(source.categories),
            "signatures": [_signature_to_dict(sig) for sig in source.all()],
            "guidelines": {
                category: {
                    "priority": g.priority,
                    "approach": g.approach,
                    "testing_required": g.testing_required,
                }
                for category, g in source.guidelines.items()
            },
        }
    if isinstance(source, (list, tuple)):
        return {
            "signatures": [
                _signature_to_dict(item) if isinstance(item, SecuritySignature) else item
                for item in source
            ]
        }
    if not isinstance(source, Mapping):
        raise CatalogError([CatalogProblem(None, "", f"unsupported catalog source type {type(source).__name__}")])
    return source


def _signature_to_dict(sig: SecuritySignature) -> dict[str, Any]:
    return {
        "id": sig.id,
        "name": sig.name,
        "pattern": sig.pattern,
        "severity": sig.severity,
        "category": sig.category,
        "description": sig.description,
        "recommendation": sig.recommendation,
        "flags": sig.flags,
        "source": sig.source,
    }


def _structural_problems(
    error: ValidationError,
    *,
    prefix: tuple[Any, ...] = (),
    index: int | None = None,
    signature_id: str = "",
) -> list[CatalogProblem]:
    problems = []
    for err in error.errors():
        path = ".".join(str(part) for part in (*prefix, *err.get("loc", ())))
        problems.append(CatalogProblem(index, signature_id, f"{path}: {err.get('msg', 'invalid value')}"))
    return problems


def _parse_document(source: Any) -> tuple[CatalogDocument, list[tuple[int, SignatureDocument]], list[CatalogProblem]]:
    """Parse the catalog root and each signature entry on its own.

    A structurally broken entry is reported and left out, while every other
    entry still goes through the semantic checks.
    """
    data = dict(_source_mapping(source))
    problems: list[CatalogProblem] = []

    raw_signatures = data.pop("signatures", [])
    if not isinstance(raw_signatures, list):
        problems.append(CatalogProblem(None, "", "signatures: must be a list"))
        raw_signatures = []

    try:
        document = CatalogDocument.model_validate(data)
    except ValidationError as e:
        problems.extend(_structural_problems(e))
        document = CatalogDocument()

    entries: list[tuple[int, SignatureDocument]] = []
    for index, raw in enumerate(raw_signatures):
        try:
            entries.append((index, SignatureDocument.model_validate(raw)))
        except ValidationError as e:
            raw_id = raw.get("id") if isinstance(raw, Mapping) else None
            problems.extend(
                _structural_problems(
                    e,
                    prefix=("signatures", index),
                    index=index,
                    signature_id=raw_id if isinstance(raw_id, str) else "",
                )
            )
    return document, entries, problems


def min_match_width(pattern: str, flags: re.RegexFlag = re.RegexFlag(0)) -> int:
    """Length of the shortest text *pattern* can match.

    Anchors, ``\\b`` and lookarounds consume nothing, so a pattern built only
    from them (or from optional pieces) has width 0.
    """
    return re._parser.parse(pattern, flags).getwidth()[0]


def _check_signature(
    index: int,
    doc: SignatureDocument,
    allowed_categories: set[str],
    seen_ids: set[str],
) -> list[CatalogProblem]:
    problems: list[CatalogProblem] = []

    def problem(message: str) -> None:
        problems.append(CatalogProblem(index, doc.id, message))

    sig_id = doc.id.strip()
    if not sig_id:
        problem("id must not be empty")
    elif sig_id in seen_ids:
        problem(f"duplicate id {sig_id!r}")
    if not doc.name.strip():
        problem("name must not be empty")
    if doc.severity not in SEVERITIES:
        problem(f"severity {doc.severity!r} is not one of {', '.join(SEVERITIES)}")
    if doc.category not in allowed_categories:
        problem(f"category {doc.category!r} is not declared in the catalog")

    try:
        flags = regex_flags(doc.flags)
    except ValueError as e:
        problem(str(e))
        return problems

    if not doc.pattern:
        problem("pattern must not be empty")
        return problems
    try:
        re.compile(doc.pattern, flags)
    except re.error as e:
        problem(f"pattern does not compile: {e}")
        return problems
    if min_match_width(doc.pattern, flags) == 0:
        problem(f"pattern {doc.pattern!r} can match the empty string")
    return problems


def load(source: Any) -> Catalog:
    """Validate a declarative catalog definition and build a :class:`Catalog`.

    *source* may be a catalog document mapping, a bare list of signature
    mappings, a sequence of :class:`SecuritySignature`, or a parsed
    :class:`CatalogDocument`. Every problem is collected before raising
    :class:`CatalogError`; a partially valid catalog is never returned.
    """
    document, entries, problems = _parse_document(source)
    declared = document.categories if document.categories is not None else DEFAULT_CATEGORIES
    allowed_categories = set(declared)

    seen_ids: set[str] = set()
    for index, doc in entries:
        problems.extend(_check_signature(index, doc, allowed_categories, seen_ids))
        if doc.id.strip():
            seen_ids.add(doc.id.strip())

    for category, guideline in document.guidelines.items():
        if category not in allowed_categories:
            problems.append(CatalogProblem(None, "", f"guideline for unknown category {category!r}"))
        if guideline.priority not in SEVERITIES:
            problems.append(
                CatalogProblem(None, "", f"guideline {category!r} priority {guideline.priority!r} is not a severity")
            )

    if problems:
        problems.sort(key=lambda p: -1 if p.index is None else p.index)
        logger.warning("catalog_invalid problems={}", len(problems))
        raise CatalogError(problems)

    signatures = [
        SecuritySignature(
            id=doc.id.strip(),
            name=doc.name.strip(),
            pattern=doc.pattern,
            severity=doc.severity,  # type: ignore[arg-type]
            category=doc.category,
            description=doc.description,
            recommendation=doc.recommendation,
            flags=doc.flags,
            source=doc.source,
        )
        for _, doc in entries
    ]
    guidelines = {
        category: CategoryGuideline(
            category=category,
            priority=guideline.priority,  # type: ignore[arg-type]
            approach=guideline.approach,
            testing_required=guideline.testing_required,
        )
        for category, guideline in document.guidelines.items()
    }
    catalog = Catalog(signatures, guidelines=guidelines, categories=dict.fromkeys(declared))
    logger.debug("catalog_loaded signatures={} categories={}", len(catalog), len(catalog.categories))
    return catalog
