# ============================================================================
# src/rxplain/__init__.py
# ============================================================================
"""
rxplain - medication understanding pipeline

Normalizes medication mentions extracted from a user's documents, merges
them into one view, checks drug-drug interaction risk, builds daily
schedules and caches rendered reports.
"""

__version__ = "0.1.0"

from .core.context import (
    AggregatedMedicationView,
    InteractionAnalysis,
    MedicationRecord,
    MedicationSchedule,
    RiskLevel,
    TimeOfDay,
)
from .processors.medication import aggregate, normalize, normalize_document, MedicationSelection
from .synthesizers import InteractionSynthesizer, ScheduleSynthesizer
from .cache import ReportCache, MISS
