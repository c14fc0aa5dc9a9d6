from typing import Any, Dict
import asyncio
from fastapi import APIRouter, Depends

from config.settings import settings
from src.api.search import get_engine
from src.roster_search.core.engine import SearchEngine


router = APIRouter(tags=["system"])


@router.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.app.app_name}",
        "version": "1.0.0",
        "status": "operational",
        "endpoints": {
            "health": "/health",
            "search": "/search",
            "stats": "/search/stats",
            "recent": "/search/recent",
            "person": "/people/{person_id}",
        },
    }


@router.get("/health")
async def health_check(engine: SearchEngine = Depends(get_engine)):
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": str(asyncio.get_event_loop().time()),
        "services": {},
    }

    if not engine.ai_available:
        health_status["services"]["openai"] = "disabled"
    elif getattr(engine.ai_matcher.client_factory, "is_configured", False):
        health_status["services"]["openai"] = "configured"
    else:
        health_status["services"]["openai"] = "not_configured"

    health_status["services"]["dataset"] = {
        "source": engine.store.source,
        "loaded": engine.store.loaded,
        "records": len(engine.store.records),
    }
    health_status["services"]["cache"] = {"size": len(engine.cache), "max_entries": engine.cache.max_entries}

    return health_status
