# ============================================================================
# src/rxplain/store/schedule_store.py
# ============================================================================
"""
Schedule Store

Durable map of MedicationSchedule records keyed by id and owning user.
Raw sqlite3 with the full schedule as a JSON column, plus an in-memory
variant with the same behaviour.
"""

import sqlite3
import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from ..core.context import MedicationSchedule
from ..utils.exceptions import StoreError

logger = logging.getLogger(__name__)


class ScheduleStore(Protocol):

    def save(self, schedule: MedicationSchedule) -> MedicationSchedule:
        """Insert or replace; assigns an id when the schedule has none."""
        ...

    def get(self, schedule_id: str) -> Optional[MedicationSchedule]:
        ...

    def list_for_user(self, user_id: str, active_only: bool = False) -> List[MedicationSchedule]:
        """Newest first."""
        ...

    def delete(self, schedule_id: str) -> bool:
        ...


def new_schedule_id() -> str:
    return uuid.uuid4().hex


def _newest_first(schedules: List[MedicationSchedule]) -> List[MedicationSchedule]:
    return sorted(schedules, key=lambda s: s.created_at, reverse=True)


class InMemoryScheduleStore:

    def __init__(self):
        self._rows: Dict[str, dict] = {}
        self._lock = threading.RLock()

    def save(self, schedule: MedicationSchedule) -> MedicationSchedule:
        with self._lock:
            if schedule.id is None:
                schedule.id = new_schedule_id()
            # Stored as a snapshot so callers can't mutate it in place
            self._rows[schedule.id] = schedule.to_dict()
        return schedule

    def get(self, schedule_id: str) -> Optional[MedicationSchedule]:
        with self._lock:
            row = self._rows.get(schedule_id)
        return MedicationSchedule.from_dict(row) if row else None

    def list_for_user(self, user_id: str, active_only: bool = False) -> List[MedicationSchedule]:
        with self._lock:
            rows = [r for r in self._rows.values() if r["userId"] == user_id]
        schedules = [MedicationSchedule.from_dict(r) for r in rows]
        if active_only:
            schedules = [s for s in schedules if s.is_active]
        return _newest_first(schedules)

    def delete(self, schedule_id: str) -> bool:
        with self._lock:
            return self._rows.pop(schedule_id, None) is not None


class SqliteScheduleStore:
    """SQLite-backed schedule store."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_database()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open schedule store {self.db_path}: {e}") from e

    def _init_database(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        cur = conn.cursor()

        cur.execute("""
            CREATE TABLE IF NOT EXISTS schedules (
                schedule_id     TEXT PRIMARY KEY,
                user_id         TEXT NOT NULL,
                name            TEXT NOT NULL,
                is_active       INTEGER DEFAULT 1,
                created_at      TEXT NOT NULL,
                updated_at      TEXT NOT NULL,
                -- Full schedule as JSON (camelCase wire shape)
                schedule_data   TEXT NOT NULL
            )
        """)

        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_schedules_user
            ON schedules (user_id, is_active)
        """)
        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_schedules_created
            ON schedules (created_at DESC)
        """)

        conn.commit()
        conn.close()
        logger.info(f"Schedule store initialized: {self.db_path}")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def save(self, schedule: MedicationSchedule) -> MedicationSchedule:
        if schedule.id is None:
            schedule.id = new_schedule_id()

        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute("""
                INSERT OR REPLACE INTO schedules
                    (schedule_id, user_id, name, is_active,
                     created_at, updated_at, schedule_data)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                schedule.id,
                schedule.user_id,
                schedule.name,
                1 if schedule.is_active else 0,
                schedule.created_at.isoformat(),
                schedule.updated_at.isoformat(),
                json.dumps(schedule.to_dict(), ensure_ascii=False),
            ))
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to save schedule {schedule.id}: {e}") from e
        finally:
            conn.close()

        logger.debug(f"Saved schedule {schedule.id} for user {schedule.user_id}")
        return schedule

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get(self, schedule_id: str) -> Optional[MedicationSchedule]:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute("SELECT schedule_data FROM schedules WHERE schedule_id = ?", (schedule_id,))
        row = cur.fetchone()
        conn.close()
        if row:
            return MedicationSchedule.from_dict(json.loads(row[0]))
        return None

    def list_for_user(self, user_id: str, active_only: bool = False) -> List[MedicationSchedule]:
        conn = self._connect()
        cur = conn.cursor()

        query = "SELECT schedule_data FROM schedules WHERE user_id = ?"
        params: list = [user_id]
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY created_at DESC"

        cur.execute(query, params)
        rows = cur.fetchall()
        conn.close()

        return [MedicationSchedule.from_dict(json.loads(r[0])) for r in rows]

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def delete(self, schedule_id: str) -> bool:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute("DELETE FROM schedules WHERE schedule_id = ?", (schedule_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        conn.close()
        return deleted
