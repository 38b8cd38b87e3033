"""
Anime List API - Main Application Entry Point.

Imports a MyAnimeList watch-history export, enriches titles with catalog
metadata from Jikan, and serves the library with tags and statistics.
"""

import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from animelist import __version__
from animelist.api.v1.router import api_router
from animelist.config import Settings, get_settings
from animelist.core.exceptions import AnimeListException
from animelist.db.session import Database
from animelist.services.enrichment import JikanClient
from animelist.services.metrics import MetricsCollector, MetricsMiddleware
from animelist.services.tag_classifier import TagClassifier

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Opens the database and the Jikan client on startup, closes them on shutdown.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting {settings.PROJECT_NAME}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            busy_timeout_ms=settings.DB_BUSY_TIMEOUT_MS,
        )
    database: Database = app.state.database

    await database.create_all()
    journal_mode = await database.journal_mode()
    if journal_mode is not None:
        logger.info(f"Database: SQLite (journal mode {journal_mode})")
    else:
        logger.info("Database: PostgreSQL")

    owns_client = app.state.jikan_client is None
    if owns_client:
        app.state.jikan_client = JikanClient(
            settings.JIKAN_BASE_URL,
            timeout=settings.JIKAN_TIMEOUT_SECONDS,
        )

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.PROJECT_NAME}")
    if owns_client:
        await app.state.jikan_client.aclose()
    if owns_database:
        await database.dispose()


async def anime_list_exception_handler(request: Request, exc: AnimeListException) -> JSONResponse:
    """
    Global exception handler for API exceptions.
    Returns {"error", "message", "details"?} responses.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all exception handler for unexpected errors.
    Logs the full error but returns a sanitized response.
    """
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
        },
    )


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    jikan_client: JikanClient | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; defaults to the environment
        database: Pre-built store handle (tests); otherwise opened at startup
        jikan_client: Pre-built Jikan client (tests); otherwise opened at startup
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="""
## Anime List API

Personal anime library built from a MyAnimeList export.

### Features
- **Import**: Idempotent import of MyAnimeList XML exports
- **Enrichment**: English/Japanese titles, images, synopsis, studios and genres from Jikan
- **Tags**: Automatic status/type/studio/genre tags plus free-form user tags
- **Statistics**: Score distribution, tag and studio rankings, watch time
        """,
        version=__version__,
        openapi_tags=[
            {"name": "import", "description": "MyAnimeList export import"},
            {"name": "enrichment", "description": "Catalog metadata enrichment"},
            {"name": "anime", "description": "Library browsing and curation"},
            {"name": "tags", "description": "Tag management operations"},
            {"name": "stats", "description": "Library statistics"},
            {"name": "health", "description": "Service health checks"},
        ],
        lifespan=lifespan,
    )

    seed = settings.TAG_COLOR_SEED
    app.state.settings = settings
    app.state.database = database
    app.state.jikan_client = jikan_client
    app.state.classifier = TagClassifier(random.Random(seed) if seed is not None else None)
    app.state.metrics = MetricsCollector()

    # CORS middleware for the browser frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(AnimeListException, anime_list_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint pointing at the API documentation."""
        return {
            "name": settings.PROJECT_NAME,
            "version": __version__,
            "docs": "/docs",
            "openapi": "/openapi.json",
            "api": settings.API_V1_PREFIX,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "animelist.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
