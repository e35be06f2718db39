# ============================================================================
# src/rxplain/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the rxplain medication pipeline.

Normalization and aggregation are total over partial input and never raise.
Failures from the knowledge collaborator surface as typed errors so that a
failed check is never mistaken for a reassuring result.
"""

from typing import List, Optional, Sequence


class RxplainError(Exception):
    """Base exception for all rxplain errors."""
    pass


class ConfigurationError(RxplainError):
    """Invalid configuration."""
    pass


class IncompleteExtraction(RxplainError):
    """A medication record lacks fields a consumer explicitly required."""
    def __init__(self, message: str, missing_fields: Sequence[str] = ()):
        super().__init__(message)
        self.missing_fields: List[str] = list(missing_fields)


class SelectionPrecondition(RxplainError, ValueError):
    """Interaction analysis requested with fewer than two medications."""
    def __init__(self, message: str, selected_count: int = 0):
        super().__init__(message)
        self.selected_count = selected_count


class UnknownMedicationError(RxplainError, KeyError):
    """Medication name not present in the aggregated view."""
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Medication not found in view: {self.name!r}"


class KnowledgeClientError(RxplainError):
    """Transport-level failure talking to the knowledge collaborator."""
    pass


class AnalysisUnavailable(RxplainError):
    """Knowledge collaborator unreachable or returned malformed output."""
    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class ScheduleValidationError(RxplainError):
    """Synthesized schedule does not satisfy the output shape contract."""
    pass


class ScheduleReferentialIntegrity(ScheduleValidationError):
    """Schedule references a medication absent from its input set."""
    def __init__(self, message: str, unknown_names: Sequence[str] = ()):
        super().__init__(message)
        self.unknown_names: List[str] = list(unknown_names)


class ScheduleNotFoundError(RxplainError):
    """Schedule does not exist or is owned by another user."""
    def __init__(self, schedule_id: str):
        super().__init__(f"Medication schedule not found: {schedule_id}")
        self.schedule_id = schedule_id


class ScheduleUpdateError(RxplainError):
    """Update payload touches immutable or unknown fields."""
    def __init__(self, message: str, fields: Sequence[str] = ()):
        super().__init__(message)
        self.fields: List[str] = list(fields)


class StoreError(RxplainError):
    """Error reading or writing a persistent store."""
    pass
