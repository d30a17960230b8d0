"""
patternscan - regex signature scanner for source trees
"""

__version__ = "0.3.0"
__logo__ = "🔎"

from patternscan.catalog.catalog import Catalog, CatalogError, load
from patternscan.core.models import Finding, ScanReport, ScanTarget, SecuritySignature
from patternscan.report.render import from_structured, to_structured, to_text
from patternscan.scanner.matcher import Matcher, scan

__all__ = [
    "Catalog",
    "CatalogError",
    "Finding",
    "Matcher",
    "ScanReport",
    "ScanTarget",
    "SecuritySignature",
    "from_structured",
    "load",
    "scan",
    "to_structured",
    "to_text",
]
