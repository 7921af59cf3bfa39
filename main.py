import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import uvicorn

import config
from api.errors import register_exception_handlers
from api.middleware import BodySizeLimitMiddleware
from api.routes import router
from database.connection import Database, DatabaseUnavailableError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan events for startup and shutdown.

    Startup:
        - Create the connection pool (unless one was injected)
        - Wait for the database, retrying a fixed number of times
        - Create tables if not exist

    Shutdown:
        - Close database connections
    """
    logger.info("🚀 Starting Face Check-in API...")

    # === STARTUP ===
    database: Optional[Database] = getattr(app.state, "database", None)
    if database is None:
        database = Database.from_config()
        app.state.database = database

    try:
        await database.connect_with_retry(config.DB_CONNECT_RETRIES, config.DB_RETRY_DELAY)
    except DatabaseUnavailableError:
        logger.critical("❌ Fatal startup error: database unreachable")
        await database.close()
        raise

    if config.DB_CREATE_TABLES:
        await database.init_schema()

    logger.info(f"✅ Face Check-in API ready on http://localhost:{config.API_PORT}")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("🔌 Shutting down...")
    await database.close()
    logger.info("👋 Goodbye!")


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    Args:
        database: Storage handle to use instead of one built from config
    """
    app = FastAPI(
        title="Face Check-in API",
        description="""
    Face Recognition Check-in Backend

    Features:
    - User registry with 128-d face descriptors
    - Check-in event log
    """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    if database is not None:
        app.state.database = database

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=config.MAX_BODY_BYTES)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.FRONTEND_URL],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(router, prefix="/api")

    # Frontend assets for every path not matched above
    if config.STATIC_DIR.is_dir():
        app.mount("/", StaticFiles(directory=config.STATIC_DIR, html=True), name="frontend")
    else:
        logger.warning(f"⚠️ Static directory {config.STATIC_DIR} not found, frontend not served")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.API_HOST,
        port=config.API_PORT,
    )
