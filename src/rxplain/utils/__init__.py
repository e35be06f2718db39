# ============================================================================
# src/rxplain/utils/__init__.py
# ============================================================================
"""
Utility modules for rxplain.
"""

from .exceptions import (
    RxplainError,
    ConfigurationError,
    IncompleteExtraction,
    SelectionPrecondition,
    UnknownMedicationError,
    KnowledgeClientError,
    AnalysisUnavailable,
    ScheduleValidationError,
    ScheduleReferentialIntegrity,
    ScheduleNotFoundError,
    ScheduleUpdateError,
    StoreError,
)

from .logging import (
    setup_logging,
    setup_logging_from_settings,
    get_logger,
    log_performance,
    JsonFormatter,
)

from .file_utils import (
    ensure_directory,
    read_json,
    write_json,
)

__all__ = [
    # Exceptions
    'RxplainError',
    'ConfigurationError',
    'IncompleteExtraction',
    'SelectionPrecondition',
    'UnknownMedicationError',
    'KnowledgeClientError',
    'AnalysisUnavailable',
    'ScheduleValidationError',
    'ScheduleReferentialIntegrity',
    'ScheduleNotFoundError',
    'ScheduleUpdateError',
    'StoreError',
    # Logging
    'setup_logging',
    'setup_logging_from_settings',
    'get_logger',
    'log_performance',
    'JsonFormatter',
    # File Utils
    'ensure_directory',
    'read_json',
    'write_json',
]
