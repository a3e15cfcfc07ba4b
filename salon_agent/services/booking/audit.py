"""
Write-only audit log of booking attempts.
"""

import asyncio
import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from ...config import get_settings
from ...core.models import BookingAttempt


class AttemptAuditLog:
    """Stores every booking attempt, confirmed or not."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_settings().state_db_path
        self._ready = False

    async def _ensure_table(self) -> None:
        if self._ready:
            return

        def _create_table():
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS appointment_attempts (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        tenant_id TEXT NOT NULL,
                        phone TEXT NOT NULL,
                        service_id INTEGER NOT NULL,
                        customer_id TEXT,
                        start_at TEXT NOT NULL,
                        duration_minutes INTEGER NOT NULL,
                        price REAL NOT NULL,
                        confirmed INTEGER NOT NULL,
                        notes TEXT,
                        idempotency_key TEXT NOT NULL,
                        payload TEXT,
                        response TEXT,
                        booking_id TEXT,
                        status TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_attempts_idem "
                    "ON appointment_attempts (idempotency_key)"
                )
                conn.commit()
            finally:
                conn.close()

        await asyncio.to_thread(_create_table)
        self._ready = True

    async def record(self, attempt: BookingAttempt) -> None:
        """Append one attempt row."""
        await self._ensure_table()
        row = (
            attempt.tenant_id,
            attempt.phone,
            attempt.service_id,
            attempt.customer_id,
            attempt.start,
            attempt.duration_minutes,
            attempt.price,
            int(attempt.confirmed),
            attempt.notes,
            attempt.idempotency_key,
            json.dumps(attempt.payload, ensure_ascii=False, default=str),
            json.dumps(attempt.response, ensure_ascii=False, default=str)
            if attempt.response is not None
            else None,
            attempt.booking_id,
            attempt.status.value,
            datetime.now(timezone.utc).isoformat(),
        )

        def _write() -> None:
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute(
                    """
                    INSERT INTO appointment_attempts (
                        tenant_id, phone, service_id, customer_id, start_at,
                        duration_minutes, price, confirmed, notes, idempotency_key,
                        payload, response, booking_id, status, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    row,
                )
                conn.commit()
            finally:
                conn.close()

        await asyncio.to_thread(_write)
