import asyncio
import inspect
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from dal.history_dal import DEFAULT_NAMESPACE, HistoryDAL
from routes.chat_route import register_chat_routes
from services.openai.completion_gateway import DEFAULT_MODEL, CompletionGateway
from services.session_manager import SessionManager
from utils.database_cleaner import DatabaseCleaner
from utils.database_init import AsyncDatabaseInitializer

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite history store (kept across restarts, at DATABASE_DIR/app.db)
      - the OpenAI async client and completion gateway
      - the session manager and the expired-history cleaner
    and attach them to `app.state`.
    """
    db_initializer = AsyncDatabaseInitializer()
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    namespace = os.getenv("HISTORY_NAMESPACE", DEFAULT_NAMESPACE)
    history_store = HistoryDAL(db_initializer, namespace=namespace)
    app.state.history_store = history_store
    app.state.session_manager = SessionManager(
        history_store, secure=_env_flag("SESSION_COOKIE_SECURE", True)
    )

    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI(api_key=openai_api_key)
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    app.state.openai_client = openai_client
    app.state.completion_gateway = CompletionGateway(
        openai_client, model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL)
    )

    cleaner = DatabaseCleaner(
        db_initializer,
        namespace,
        retention_seconds=int(os.getenv("HISTORY_RETENTION_SECONDS", "86400")),
    )
    cleanup_task = asyncio.create_task(
        cleaner.run_periodic_cleanup(int(os.getenv("HISTORY_CLEANUP_INTERVAL_SECONDS", "3600")))
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
                    # Ignore shutdown errors to avoid masking more important issues.
                    logging.warning("Failed to close OpenAI client", exc_info=True)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies store and OpenAI client presence.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        has_openai = (
            hasattr(request.app.state, "openai_client")
            and request.app.state.openai_client is not None
        )
        return {"ok": True, "db_initialized": has_db, "openai_available": has_openai}

    register_chat_routes(app)

    return app


app = create_app()
