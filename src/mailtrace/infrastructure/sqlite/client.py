"""SQLite store for email analyses (at most one row per Message-ID)."""

from __future__ import annotations

import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, Optional

from loguru import logger

from mailtrace.application.ports.analysis_store import AnalysisStore
from mailtrace.domain.entities.email_analysis import EmailAnalysisRecord
from mailtrace.domain.models import ProcessingStatus, StoredAnalysis


class SQLiteAnalysisStore(AnalysisStore):
    """SQLite implementation of AnalysisStore."""

    def __init__(self, db_path: str | Path = "data/mailtrace.db"):
        self.db_path = Path(db_path)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connection() as conn:
            conn.executescript("""
                PRAGMA journal_mode=WAL;

                CREATE TABLE IF NOT EXISTS email_analyses (
                    id TEXT PRIMARY KEY,
                    message_id TEXT NOT NULL UNIQUE,
                    subject TEXT NOT NULL DEFAULT '',
                    sender TEXT NOT NULL DEFAULT '',
                    recipient TEXT NOT NULL DEFAULT '',
                    date TEXT,
                    relevant_headers TEXT NOT NULL DEFAULT '{}',
                    receiving_chain TEXT NOT NULL DEFAULT '[]',
                    esp_type TEXT NOT NULL DEFAULT 'Unknown',
                    esp_confidence REAL NOT NULL DEFAULT 0,
                    esp_indicators TEXT NOT NULL DEFAULT '[]',
                    body_excerpt TEXT NOT NULL DEFAULT '',
                    processing_status TEXT NOT NULL DEFAULT 'pending'
                        CHECK(processing_status IN ('pending','completed','failed')),
                    error TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_email_analyses_created
                    ON email_analyses(created_at);
            """)
            logger.info(f"SQLite database initialized at {self.db_path}")

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def exists(self, message_id: str) -> bool:
        """True if a completed analysis is already stored for this Message-ID."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM email_analyses WHERE message_id = ? AND processing_status = ?",
                (message_id, ProcessingStatus.COMPLETED.value),
            ).fetchone()
        return row is not None

    def save(self, record: EmailAnalysisRecord) -> bool:
        """Store a completed analysis. Returns False if one already exists.

        A failed attempt for the same Message-ID is replaced.
        """
        now = datetime.now(timezone.utc).isoformat()

        with self._connection() as conn:
            cursor = conn.execute(
                """INSERT INTO email_analyses
                   (id, message_id, subject, sender, recipient, date, relevant_headers,
                    receiving_chain, esp_type, esp_confidence, esp_indicators,
                    body_excerpt, processing_status, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(message_id) DO UPDATE SET
                       subject = excluded.subject,
                       sender = excluded.sender,
                       recipient = excluded.recipient,
                       date = excluded.date,
                       relevant_headers = excluded.relevant_headers,
                       receiving_chain = excluded.receiving_chain,
                       esp_type = excluded.esp_type,
                       esp_confidence = excluded.esp_confidence,
                       esp_indicators = excluded.esp_indicators,
                       body_excerpt = excluded.body_excerpt,
                       processing_status = excluded.processing_status,
                       error = NULL
                   WHERE email_analyses.processing_status != 'completed'""",
                (
                    str(uuid.uuid4()),
                    record.message_id,
                    record.subject,
                    record.sender,
                    record.to,
                    record.date.isoformat(),
                    json.dumps({k: list(v) for k, v in record.relevant_headers.items()}),
                    json.dumps(list(record.receiving_chain)),
                    record.esp_type,
                    record.esp_confidence,
                    json.dumps(list(record.esp_indicators)),
                    record.body_excerpt,
                    ProcessingStatus.COMPLETED.value,
                    now,
                ),
            )
            stored = cursor.rowcount > 0

        if stored:
            logger.debug(f"Stored analysis for {record.message_id}")
        else:
            logger.info(f"Email {record.message_id} already processed")
        return stored

    def mark_failed(self, message_id: str, error: str) -> None:
        """Record a failed attempt. A completed analysis is never downgraded."""
        now = datetime.now(timezone.utc).isoformat()

        with self._connection() as conn:
            conn.execute(
                """INSERT INTO email_analyses (id, message_id, processing_status, error, created_at)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(message_id) DO UPDATE SET
                       processing_status = excluded.processing_status,
                       error = excluded.error
                   WHERE email_analyses.processing_status != 'completed'""",
                (str(uuid.uuid4()), message_id, ProcessingStatus.FAILED.value, error, now),
            )
        logger.warning(f"Marked {message_id} as failed: {error}")

    def get(self, analysis_id: str) -> Optional[StoredAnalysis]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM email_analyses WHERE id = ?",
                (analysis_id,),
            ).fetchone()
        return _row_to_analysis(row) if row else None

    def latest(self) -> Optional[StoredAnalysis]:
        recent = self.list_recent(limit=1)
        return recent[0] if recent else None

    def list_recent(self, limit: int = 50) -> list[StoredAnalysis]:
        """Most recently stored analyses first."""
        with self._connection() as conn:
            rows = conn.execute(
                """SELECT * FROM email_analyses
                   ORDER BY created_at DESC, rowid DESC
                   LIMIT ?""",
                (limit,),
            ).fetchall()
        return [_row_to_analysis(row) for row in rows]


def _row_to_analysis(row: sqlite3.Row) -> StoredAnalysis:
    return StoredAnalysis(
        id=row["id"],
        message_id=row["message_id"],
        subject=row["subject"],
        sender=row["sender"],
        to=row["recipient"],
        date=datetime.fromisoformat(row["date"]) if row["date"] else None,
        relevant_headers=json.loads(row["relevant_headers"]),
        receiving_chain=json.loads(row["receiving_chain"]),
        esp_type=row["esp_type"],
        esp_confidence=row["esp_confidence"],
        esp_indicators=json.loads(row["esp_indicators"]),
        body_excerpt=row["body_excerpt"],
        processing_status=ProcessingStatus(row["processing_status"]),
        error=row["error"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


# Singleton instance
_store: SQLiteAnalysisStore | None = None


def get_sqlite_store(db_path: str | None = None) -> SQLiteAnalysisStore:
    """Get or create SQLite store singleton."""
    global _store
    if _store is None:
        from mailtrace.infrastructure.settings import get_settings
        path = db_path or get_settings().sqlite_db_path
        _store = SQLiteAnalysisStore(db_path=path)
    return _store
