"""
SQLite-backed store for per-(tenant, phone) conversation state.
"""

import asyncio
import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ...core.models import ConversationState
from ...config import get_settings
from ...utils.logging import get_logger

logger = get_logger("salon.state")


class ConversationStateStore:
    """Persists one ConversationState per (tenant_id, phone)."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_settings().state_db_path
        self._lock = asyncio.Lock()
        self._ready = False

    async def _ensure_table(self) -> None:
        """Ensure the state table exists."""
        if self._ready:
            return

        def _create_table():
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS conversation_state (
                        tenant_id TEXT NOT NULL,
                        phone TEXT NOT NULL,
                        state TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        PRIMARY KEY (tenant_id, phone)
                    )
                    """
                )
                conn.commit()
            finally:
                conn.close()

        await asyncio.to_thread(_create_table)
        self._ready = True

    async def get(self, tenant_id: str, phone: str) -> Optional[ConversationState]:
        """Load the stored state or None for an unseen conversation."""
        await self._ensure_table()

        async with self._lock:
            def _fetch() -> Optional[str]:
                conn = sqlite3.connect(self.db_path)
                try:
                    cur = conn.execute(
                        "SELECT state FROM conversation_state WHERE tenant_id = ? AND phone = ?",
                        (tenant_id, phone),
                    )
                    row = cur.fetchone()
                finally:
                    conn.close()
                return row[0] if row else None

            raw = await asyncio.to_thread(_fetch)

        if raw is None:
            return None
        return ConversationState.model_validate_json(raw)

    async def replace(self, state: ConversationState) -> ConversationState:
        """Write the whole state, bumping its version."""
        await self._ensure_table()
        stored = state.model_copy(
            update={
                "version": state.version + 1,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        payload = stored.model_dump_json()

        async with self._lock:
            def _write() -> None:
                conn = sqlite3.connect(self.db_path)
                try:
                    conn.execute(
                        """
                        INSERT INTO conversation_state (tenant_id, phone, state, updated_at)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT (tenant_id, phone)
                        DO UPDATE SET state = excluded.state, updated_at = excluded.updated_at
                        """,
                        (stored.tenant_id, stored.phone, payload, stored.updated_at),
                    )
                    conn.commit()
                finally:
                    conn.close()

            await asyncio.to_thread(_write)

        logger.debug(f"state saved for {stored.tenant_id}:{stored.phone} v{stored.version}")
        return stored

    async def patch(
        self, tenant_id: str, phone: str, partial: Dict[str, Any]
    ) -> ConversationState:
        """Merge ``partial`` into the stored state, creating it when missing.

        Top-level keys replace their field; a ``slots`` dict is merged key by key.
        """
        current = await self.get(tenant_id, phone)
        data = (
            current.model_dump(mode="json")
            if current is not None
            else ConversationState(tenant_id=tenant_id, phone=phone).model_dump(mode="json")
        )

        for key, value in partial.items():
            if key in ("tenant_id", "phone"):
                continue
            if key == "slots" and isinstance(value, dict):
                data["slots"] = {**data["slots"], **_to_jsonable(value)}
            else:
                data[key] = _to_jsonable(value)

        return await self.replace(ConversationState.model_validate(data))


def _to_jsonable(value: Any) -> Any:
    """Round-trip pydantic models and enums to plain JSON types."""
    return json.loads(json.dumps(value, default=_default))


def _default(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "value"):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
