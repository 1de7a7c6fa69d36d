"""Helpers to remove stale images and abandoned snapshots from the SQLite database."""

import asyncio
import logging
import time
from typing import Dict

from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class DatabaseCleaner:
    """Delete rows older than the configured retention window."""

    def __init__(self, db_initializer: AsyncDatabaseInitializer, retention_seconds: int = 86_400) -> None:
        """
        Args:
            db_initializer: Shared database initializer/connection provider.
            retention_seconds: Age threshold in seconds; rows older than this are removed.
        """
        self._db = db_initializer
        self.retention_seconds = retention_seconds

    async def prune_expired(self) -> Dict[str, int]:
        """Delete expired GAME_IMAGE and SESSION_SNAPSHOT rows; return counts removed."""
        cutoff = int(time.time()) - self.retention_seconds
        async with self._db.connection() as conn:
            images = await conn.execute("DELETE FROM GAME_IMAGE WHERE created_at < ?", (cutoff,))
            snapshots = await conn.execute("DELETE FROM SESSION_SNAPSHOT WHERE updated_at < ?", (cutoff,))
            await conn.commit()
            removed = {"images": max(images.rowcount, 0), "snapshots": max(snapshots.rowcount, 0)}
        if removed["images"] or removed["snapshots"]:
            LOGGER.info("Pruned %(images)s images and %(snapshots)s snapshots", removed)
        return removed

    async def run_periodic_cleanup(self, interval_seconds: int = 3_600) -> None:
        """
        Repeatedly prune expired rows at the given interval until cancelled.

        Args:
            interval_seconds: Seconds to sleep between cleanup runs.
        """
        while True:
            try:
                await self.prune_expired()
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("Database cleanup failed; retrying next tick")
            await asyncio.sleep(interval_seconds)
