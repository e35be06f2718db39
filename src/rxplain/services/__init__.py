# ============================================================================
# src/rxplain/services/__init__.py
# ============================================================================
"""
Application services over the stores and synthesizers.
"""

from .medication_service import MedicationService
from .schedule_service import ScheduleService, ScheduleGenerationResult
