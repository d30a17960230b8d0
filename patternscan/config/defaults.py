"""Centralized defaults for generated config files."""

from __future__ import annotations

from typing import Any

DEFAULT_SCANNER: dict[str, Any] = {
    "concurrency": 4,
    "max_matches_per_signature": 10_000,
    "max_matched_text_chars": 200,
    "include_extensions": [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py"],
    "exclude_dirs": ["node_modules", ".git", "dist", "build", "coverage", "__pycache__"],
    "max_file_bytes": 1_000_000,
    "fail_on": "critical",
}
