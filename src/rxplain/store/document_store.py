# ============================================================================
# src/rxplain/store/document_store.py
# ============================================================================
"""
Document Store

Persists per-document medication extraction results so the aggregated view
can be rebuilt whenever a user's document set changes. Raw sqlite3, JSON for
the medication list.
"""

import sqlite3
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from datetime import datetime

from ..processors.medication.aggregator import DocumentMedications

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    SQLite-backed store for extracted medication lists.

    The ``medications`` column holds the raw extraction output verbatim;
    normalization happens on read, so improvements to the normalizer apply
    to documents processed earlier.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_database()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    def _init_database(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()

        cur.execute("""
            CREATE TABLE IF NOT EXISTS medication_documents (
                seq             INTEGER PRIMARY KEY AUTOINCREMENT,
                document_id     TEXT NOT NULL UNIQUE,
                user_id         TEXT NOT NULL,
                document_name   TEXT NOT NULL,
                created_at      TEXT NOT NULL,
                -- Raw extraction output as JSON
                medications     TEXT NOT NULL
            )
        """)

        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_medication_documents_user
            ON medication_documents (user_id, seq)
        """)

        conn.commit()
        conn.close()
        logger.info(f"Document store initialized: {self.db_path}")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def save(
        self,
        document_id: str,
        user_id: str,
        document_name: str,
        medications: Any,
        created_at: Optional[datetime] = None,
    ) -> None:
        """
        Persist one document's extraction result.

        Re-saving an existing document_id replaces its medications but keeps
        its original processing position.
        """
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()

        cur.execute("""
            INSERT INTO medication_documents
                (document_id, user_id, document_name, created_at, medications)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(document_id) DO UPDATE SET
                document_name = excluded.document_name,
                medications = excluded.medications
        """, (
            document_id,
            user_id,
            document_name,
            (created_at or datetime.now()).isoformat(),
            json.dumps(medications if medications is not None else [], default=str),
        ))

        conn.commit()
        conn.close()
        logger.info(f"Saved medications for document {document_id}")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get(self, document_id: str) -> Optional[Dict[str, Any]]:
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("""
            SELECT document_id, user_id, document_name, created_at, medications
            FROM medication_documents WHERE document_id = ?
        """, (document_id,))
        row = cur.fetchone()
        conn.close()
        return _row_to_dict(row) if row else None

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """Documents for a user in processing order."""
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("""
            SELECT document_id, user_id, document_name, created_at, medications
            FROM medication_documents WHERE user_id = ?
            ORDER BY seq ASC
        """, (user_id,))
        rows = cur.fetchall()
        conn.close()
        return [_row_to_dict(r) for r in rows]

    def documents_for_user(self, user_id: str) -> List[DocumentMedications]:
        """Normalized per-document medication lists, ready to aggregate."""
        return [
            DocumentMedications.from_extraction(
                doc["document_id"], doc["document_name"], doc["medications"]
            )
            for doc in self.list_for_user(user_id)
        ]

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def delete(self, document_id: str) -> bool:
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("DELETE FROM medication_documents WHERE document_id = ?", (document_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        conn.close()
        return deleted


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "document_id": row[0],
        "user_id": row[1],
        "document_name": row[2],
        "created_at": row[3],
        "medications": json.loads(row[4]),
    }
