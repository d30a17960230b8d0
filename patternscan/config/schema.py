"""Configuration schema using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from patternscan.config.defaults import DEFAULT_SCANNER

FailOn = Literal["critical", "high", "medium", "low", "none"]


class ScannerConfig(BaseSettings):
    """Root configuration for patternscan."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, env_prefix="PATTERNSCAN_", env_nested_delimiter="__")

    concurrency: int = Field(default=int(DEFAULT_SCANNER["concurrency"]), ge=1)
    max_matches_per_signature: int = Field(default=int(DEFAULT_SCANNER["max_matches_per_signature"]), ge=1)
    max_matched_text_chars: int = Field(default=int(DEFAULT_SCANNER["max_matched_text_chars"]), ge=1)
    include_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_SCANNER["include_extensions"]))
    exclude_dirs: list[str] = Field(default_factory=lambda: list(DEFAULT_SCANNER["exclude_dirs"]))
    max_file_bytes: int = Field(default=int(DEFAULT_SCANNER["max_file_bytes"]), ge=1)
    catalog_path: str | None = None
    fail_on: FailOn = str(DEFAULT_SCANNER["fail_on"])

    @field_validator("include_extensions")
    @classmethod
    def _normalize_extensions(cls, values: list[str]) -> list[str]:
        normalized = []
        for value in values:
            ext = value.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized

    @property
    def catalog_file(self) -> Path | None:
        return Path(self.catalog_path).expanduser() if self.catalog_path else None
