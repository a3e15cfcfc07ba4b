"""
Tenant-scoped local service catalog stored in SQLite.
"""

import asyncio
import sqlite3
from typing import Iterable, List, Optional, Set

from ...config import get_settings
from ...core.exceptions import CatalogError
from ...core.models import CatalogService
from ...utils.text import TextProcessor


class LocalCatalog:
    """Local mirror of the bookable services of each tenant."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_settings().state_db_path
        self._ready = False

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    async def _run(self, fn):
        try:
            return await asyncio.to_thread(fn)
        except sqlite3.Error as e:
            raise CatalogError(f"catalog query failed: {e}") from e

    async def _ensure_table(self) -> None:
        if self._ready:
            return

        def _create_table():
            conn = self._connect()
            try:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS catalog_services (
                        tenant_id TEXT NOT NULL,
                        service_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        category TEXT,
                        duration_minutes INTEGER NOT NULL DEFAULT 0,
                        price REAL NOT NULL DEFAULT 0,
                        active INTEGER NOT NULL DEFAULT 1,
                        PRIMARY KEY (tenant_id, service_id)
                    )
                    """
                )
                conn.commit()
            finally:
                conn.close()

        await self._run(_create_table)
        self._ready = True

    async def upsert_services(
        self, tenant_id: str, services: Iterable[CatalogService], *, active: bool = True
    ) -> int:
        """Insert or update services for a tenant. Returns the number written."""
        await self._ensure_table()
        rows = [
            (tenant_id, s.id, s.name, s.category, s.duration_minutes, s.price, int(active))
            for s in services
        ]

        def _write() -> None:
            conn = self._connect()
            try:
                conn.executemany(
                    """
                    INSERT INTO catalog_services
                        (tenant_id, service_id, name, category, duration_minutes, price, active)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (tenant_id, service_id) DO UPDATE SET
                        name = excluded.name,
                        category = excluded.category,
                        duration_minutes = excluded.duration_minutes,
                        price = excluded.price,
                        active = excluded.active
                    """,
                    rows,
                )
                conn.commit()
            finally:
                conn.close()

        await self._run(_write)
        return len(rows)

    async def _active_services(self, tenant_id: str) -> List[CatalogService]:
        await self._ensure_table()

        def _fetch():
            conn = self._connect()
            try:
                cur = conn.execute(
                    """
                    SELECT service_id, name, category, duration_minutes, price
                    FROM catalog_services
                    WHERE tenant_id = ? AND active = 1
                    """,
                    (tenant_id,),
                )
                return cur.fetchall()
            finally:
                conn.close()

        rows = await self._run(_fetch)
        return [
            CatalogService(
                id=row["service_id"],
                name=row["name"],
                category=row["category"],
                duration_minutes=row["duration_minutes"],
                price=row["price"],
            )
            for row in rows
        ]

    async def suggest(self, tenant_id: str, query: str, limit: int = 5) -> List[CatalogService]:
        """Active services matching ``query`` by name or category, best match first."""
        needle = TextProcessor.normalize_text(query)
        if not needle:
            return []

        ranked = []
        for service in await self._active_services(tenant_id):
            name = TextProcessor.normalize_text(service.name)
            category = TextProcessor.normalize_text(service.category or "")
            if name == needle:
                rank = 0
            elif needle in name:
                rank = 1
            elif category and category == needle:
                rank = 2
            elif category and needle in category:
                rank = 3
            else:
                continue
            ranked.append((rank, name, service))

        ranked.sort(key=lambda item: (item[0], item[1]))
        return [service for _, _, service in ranked[:limit]]

    async def get(self, tenant_id: str, service_id: int) -> Optional[CatalogService]:
        """Return the active service with ``service_id`` or None."""
        for service in await self._active_services(tenant_id):
            if service.id == service_id:
                return service
        return None

    async def exists(self, tenant_id: str, service_id: int) -> bool:
        return await self.get(tenant_id, service_id) is not None

    async def deactivate_missing(self, tenant_id: str, keep_ids: Set[int]) -> int:
        """Mark services not in ``keep_ids`` inactive. Returns how many changed."""
        await self._ensure_table()
        active = {s.id for s in await self._active_services(tenant_id)}
        stale = sorted(active - set(keep_ids))
        if not stale:
            return 0

        def _write() -> None:
            conn = self._connect()
            try:
                conn.executemany(
                    "UPDATE catalog_services SET active = 0 WHERE tenant_id = ? AND service_id = ?",
                    [(tenant_id, service_id) for service_id in stale],
                )
                conn.commit()
            finally:
                conn.close()

        await self._run(_write)
        return len(stale)
