import os
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS GAME_IMAGE (
        id TEXT PRIMARY KEY,
        url TEXT NOT NULL,
        alt_text TEXT,
        features_json TEXT NOT NULL,
        difficulty TEXT NOT NULL,
        thumbnail BLOB,
        created_at INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS SESSION_SNAPSHOT (
        session_key TEXT PRIMARY KEY,
        image_id TEXT,
        payload TEXT NOT NULL,
        updated_at INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_game_image_created_at ON GAME_IMAGE(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_session_snapshot_updated_at ON SESSION_SNAPSHOT(updated_at)",
)


class AsyncDatabaseInitializer:
    """
    Manage an async SQLite database using the DATABASE_DIR environment variable.

    - The database file is located at: <DATABASE_DIR>/app.db
    - DATABASE_DIR is required. A RuntimeError is raised if it is missing
      or invalid (not a directory and cannot be created).
    - On the first call to `ensure_database()` for a given instance:
        * Any existing database file at that path is deleted.
        * A new database file is created with the GAME_IMAGE and
          SESSION_SNAPSHOT tables.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self) -> None:
        env_dir = os.getenv("DATABASE_DIR")

        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        db_dir = Path(env_dir).expanduser()

        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={env_dir!r} points to a file, not a directory "
                f"({db_dir}). Please set DATABASE_DIR to a directory path."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.db_dir = db_dir
        self.db_path = self.db_dir / "app.db"

        # Wipe-and-recreate happens once per instance.
        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure a fresh SQLite database exists at `self.db_path`.

        On first call this deletes any existing database file and creates
        the schema. Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        if self.db_path.exists():
            try:
                self.db_path.unlink()
            except OSError as exc:
                raise RuntimeError(
                    f"Failed to delete existing database at {self.db_path}"
                ) from exc

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    for statement in SCHEMA_STATEMENTS:
                        await db.execute(statement)
                    await db.commit()
                break
            except FileNotFoundError:
                # Transient missing-file errors happen on some platforms.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The database is created/reset on the first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
