"""Signature catalog package."""

from patternscan.catalog.catalog import Catalog, CatalogError, CatalogProblem, compile_signature, load
from patternscan.catalog.loader import (
    default_catalog,
    export_catalog,
    get_catalog_path,
    load_catalog,
    read_catalog_document,
)

__all__ = [
    "Catalog",
    "CatalogError",
    "CatalogProblem",
    "compile_signature",
    "default_catalog",
    "export_catalog",
    "get_catalog_path",
    "load",
    "load_catalog",
    "read_catalog_document",
]
