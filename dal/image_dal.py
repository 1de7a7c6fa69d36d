"""Async Data Access Layer for the GAME_IMAGE table.

Provides ImageDAL class with async CRUD operations compatible with
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import json
import time
from typing import List, Optional, Sequence

from models.image_record import Difficulty, ImageRecord
from utils.database_init import AsyncDatabaseInitializer


class ImageDAL:
    """Data access layer for game images.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "url",
        "alt_text",
        "features_json",
        "difficulty",
        "thumbnail",
        "created_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def save_image(self, record: ImageRecord) -> str:
        """Insert or replace a GAME_IMAGE row and return its id."""
        created_at = record.created_at or int(time.time())

        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT OR REPLACE INTO GAME_IMAGE ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.url,
                    record.alt_text,
                    json.dumps(list(record.features)),
                    record.difficulty.value,
                    record.thumbnail,
                    created_at,
                ),
            )
            await conn.commit()
        return record.id

    async def get_image_by_id(self, image_id: str) -> Optional[ImageRecord]:
        """Return ImageRecord for `image_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM GAME_IMAGE WHERE id = ?",
                (image_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_images(self, limit: int = 100, offset: int = 0) -> List[ImageRecord]:
        """List GAME_IMAGE rows, newest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM GAME_IMAGE ORDER BY created_at DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def delete_image(self, image_id: str) -> bool:
        """Delete a GAME_IMAGE row by id. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            cur = await conn.execute("DELETE FROM GAME_IMAGE WHERE id = ?", (image_id,))
            await conn.commit()
            return cur.rowcount > 0

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> ImageRecord:
        """Convert a DB row tuple into an ImageRecord."""
        return ImageRecord(
            id=row[0],
            url=row[1],
            alt_text=row[2] or "",
            features=json.loads(row[3] or "[]"),
            difficulty=Difficulty(row[4]),
            thumbnail=row[5],
            created_at=row[6],
        )
