"""Declarative catalog document schema.

Enumerated fields stay plain strings here so that ``load`` can report every
bad value at once instead of stopping at the first pydantic error.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CatalogModel(BaseModel):
    """Base model with strict document parsing."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class SignatureDocument(CatalogModel):
    """One signature definition as written in a catalog file."""

    id: str = ""
    name: str = ""
    pattern: str = ""
    severity: str = ""
    category: str = ""
    description: str = ""
    recommendation: str = ""
    flags: str = ""
    source: str = "builtin"


class GuidelineDocument(CatalogModel):
    """Per-category remediation guidance."""

    priority: str = "medium"
    approach: str = ""
    testing_required: bool = Field(default=True, alias="testingRequired")


class CatalogDocument(CatalogModel):
    """Root catalog document."""

    version: int = 1
    categories: list[str] | None = None
    signatures: list[SignatureDocument] = Field(default_factory=list)
    guidelines: dict[str, GuidelineDocument] = Field(default_factory=dict)
