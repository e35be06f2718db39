# ============================================================================
# src/rxplain/store/__init__.py
# ============================================================================
"""
Persistent stores for schedules and per-document extraction results.
"""

from .schedule_store import ScheduleStore, SqliteScheduleStore, InMemoryScheduleStore
from .document_store import DocumentStore
