# ============================================================================
# src/rxplain/core/context/__init__.py
# ============================================================================
"""
Pipeline data types shared by processors, synthesizers and services.
"""

from .enums import RiskLevel, TimeOfDay, NameSource
from .medication_record import (
    MedicationNames,
    RawMedicationEntry,
    MedicationRecord,
    PLACEHOLDER_TEMPLATE,
)
from .medication_view import AggregatedMedicationView, name_key
from .interaction import InteractionAnalysis
from .schedule import (
    ScheduledMedication,
    DailySlot,
    WeeklyAdjustment,
    MedicationSchedule,
)
