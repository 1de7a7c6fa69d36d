import asyncio
import inspect
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from dal.session_snapshot_dal import SessionSnapshotDAL
from routes.game_route import router as game_router
from routes.image_route import router as image_router
from services.game.session_lifecycle import SessionLifecycleManager
from services.game.snapshot_store import InMemorySnapshotStore
from utils.database_cleaner import DatabaseCleaner
from utils.database_init import AsyncDatabaseInitializer

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite database (always new on startup, at DATABASE_DIR/app.db)
      - the OpenAI async client
      - the session lifecycle manager on the configured snapshot store
      - the periodic cleanup task for expired rows
    and attach them to `app.state`.
    """
    # Initialize DB using DATABASE_DIR only.
    db_initializer = AsyncDatabaseInitializer()

    # This will delete any existing DB at db_path and create a fresh one.
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    # Initialize OpenAI async client
    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    app.state.openai_client = openai_client

    store_kind = os.getenv("SNAPSHOT_STORE", "sqlite").strip().lower()
    if store_kind == "memory":
        store = InMemorySnapshotStore()
    elif store_kind == "sqlite":
        store = SessionSnapshotDAL(db_initializer)
    else:
        raise RuntimeError(f"Unknown SNAPSHOT_STORE={store_kind!r}; expected 'sqlite' or 'memory'")
    app.state.session_manager = SessionLifecycleManager(store)
    LOGGER.info("Using %s snapshot store", store_kind)

    cleaner = DatabaseCleaner(db_initializer, retention_seconds=int(os.getenv("RETENTION_SECONDS", "86400")))
    cleanup_task = asyncio.create_task(
        cleaner.run_periodic_cleanup(int(os.getenv("CLEANUP_INTERVAL_SECONDS", "3600")))
    )

    try:
        yield
    finally:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass

        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    if inspect.iscoroutinefunction(aclose):
                        await aclose()
                    else:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                except Exception:
                    LOGGER.warning("Error while closing the OpenAI client", exc_info=True)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies DB initializer, OpenAI client and session manager presence.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        has_openai = (
            hasattr(request.app.state, "openai_client")
            and request.app.state.openai_client is not None
        )
        has_sessions = getattr(request.app.state, "session_manager", None) is not None
        return {
            "ok": True,
            "db_initialized": has_db,
            "openai_available": has_openai,
            "sessions_available": has_sessions,
        }

    # Register application routers
    app.include_router(game_router)
    app.include_router(image_router)

    return app


app = create_app()
