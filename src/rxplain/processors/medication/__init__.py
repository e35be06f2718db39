# ============================================================================
# src/rxplain/processors/medication/__init__.py
# ============================================================================
"""
Medication normalization and cross-document aggregation.
"""

from .normalizer import normalize, normalize_document, parse_raw_entry, resolve_display_name
from .aggregator import aggregate, DocumentMedications, MedicationSelection

__all__ = [
    "normalize",
    "normalize_document",
    "parse_raw_entry",
    "resolve_display_name",
    "aggregate",
    "DocumentMedications",
    "MedicationSelection",
]
