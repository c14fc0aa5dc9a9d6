"""
Main FastAPI application for Roster Search.

Bilingual participant search with synonym expansion, fuzzy matching and an
optional natural-language matching strategy.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.search import router as search_router
from src.api.system import router as system_router
from src.roster_search.core.engine import SearchEngine
from src.roster_search.core.exceptions import DatasetLoadError
from src.roster_search.utils.logging import setup_logging, get_logger
from config.settings import settings

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle events."""
    # Startup
    logger.info(f"[STARTUP] Starting {settings.app.app_name}")
    logger.info(f"[CONFIG] Dataset source: {settings.dataset.source}")
    logger.info(f"[CONFIG] Debug mode: {settings.app.debug}")

    if getattr(app.state, "engine", None) is None:
        app.state.engine = SearchEngine.from_settings(settings)

    try:
        records = await app.state.engine.store.load()
        logger.info(f"[SUCCESS] Dataset loaded: {len(records)} participants")
    except DatasetLoadError as e:
        logger.warning(f"[WARNING] Dataset not loaded at startup: {e}")

    yield

    # Shutdown
    await app.state.engine.close()
    logger.info(f"[SHUTDOWN] Shutting down {settings.app.app_name}")


# Initialize FastAPI app
app = FastAPI(
    title=settings.app.app_name,
    description="Bilingual roster search API with synonym, fuzzy and AI-assisted matching",
    version="1.0.0",
    debug=settings.app.debug,
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure as needed for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(search_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=settings.app.debug)
