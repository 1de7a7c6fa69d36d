"""Async Data Access Layer for the SESSION_SNAPSHOT table.

Implements the snapshot store used by the session lifecycle manager: one
serialized session per session key, overwritten on every update.
"""

from __future__ import annotations

import time
from typing import Optional

from utils.database_init import AsyncDatabaseInitializer


class SessionSnapshotDAL:
    """SQLite-backed snapshot store."""

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def save(self, session_key: str, payload: str, *, image_id: Optional[str] = None) -> None:
        """Insert or overwrite the snapshot for `session_key`."""
        async with self._db.connection() as conn:
            await conn.execute(
                """
                INSERT INTO SESSION_SNAPSHOT (session_key, image_id, payload, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(session_key) DO UPDATE SET
                    image_id = excluded.image_id,
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (session_key, image_id, payload, int(time.time())),
            )
            await conn.commit()

    async def load(self, session_key: str) -> Optional[str]:
        """Return the stored payload, or None."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT payload FROM SESSION_SNAPSHOT WHERE session_key = ?",
                (session_key,),
            )
            row = await cur.fetchone()
            return row[0] if row else None

    async def delete(self, session_key: str) -> bool:
        """Delete the snapshot. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            cur = await conn.execute("DELETE FROM SESSION_SNAPSHOT WHERE session_key = ?", (session_key,))
            await conn.commit()
            return cur.rowcount > 0
