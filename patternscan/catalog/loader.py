"""Catalog file loading utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from patternscan.catalog.catalog import Catalog, CatalogError, CatalogProblem, load
from patternscan.catalog.defaults import default_catalog_document


def get_catalog_path() -> Path:
    """Get the default user catalog path."""
    return Path.home() / ".patternscan" / "catalog.json"


def default_catalog() -> Catalog:
    """Build the built-in catalog."""
    return load(default_catalog_document())


def read_catalog_document(path: Path) -> dict[str, Any]:
    """Read a raw catalog document, wrapping I/O and JSON failures as CatalogError."""
    try:
        with open(path) as f:
            data = json.load(f)
    except OSError as e:
        raise CatalogError([CatalogProblem(None, "", f"cannot read {path}: {e}")]) from e
    except json.JSONDecodeError as e:
        raise CatalogError([CatalogProblem(None, "", f"{path} is not valid JSON: {e}")]) from e
    if isinstance(data, list):
        return {"signatures": data}
    if not isinstance(data, dict):
        raise CatalogError([CatalogProblem(None, "", f"{path} must hold a JSON object or list")])
    return data


def load_catalog(path: Path | None = None) -> Catalog:
    """Load a catalog file, or the built-in catalog when *path* is None."""
    if path is None:
        return default_catalog()
    data = read_catalog_document(path)
    catalog = load(data)
    logger.info("catalog_file_loaded path={} signatures={}", path, len(catalog))
    return catalog


def export_catalog(path: Path, document: dict[str, Any] | None = None) -> Path:
    """Write a catalog document (built-in by default) as JSON."""
    payload = document if document is not None else default_catalog_document()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    with open(tmp_path, "w") as f:
        json.dump(payload, f, indent=2)
    tmp_path.replace(path)
    return path
