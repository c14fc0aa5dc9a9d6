from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request

from src.roster_search.core.engine import EMPTY_QUERY_ERROR, SearchEngine
from src.roster_search.core.exceptions import RosterSearchError
from src.roster_search.core.models import PersonRecord, SearchResponse


router = APIRouter(tags=["search"])


def get_engine(request: Request) -> SearchEngine:
    return request.app.state.engine


async def _run_search(engine: SearchEngine, query: str) -> SearchResponse:
    response = await engine.search(query)
    if response.error == EMPTY_QUERY_ERROR:
        raise HTTPException(status_code=400, detail=response.error)
    if response.error:
        raise HTTPException(status_code=503, detail=response.error)
    return response


@router.get("/search", response_model=SearchResponse)
async def search_get(
    q: str = Query("", description="Free-text query in English or Japanese"),
    engine: SearchEngine = Depends(get_engine),
):
    return await _run_search(engine, q)


@router.post("/search", response_model=SearchResponse)
async def search_post(query: str = Form(""), engine: SearchEngine = Depends(get_engine)):
    return await _run_search(engine, query)


@router.get("/search/stats")
async def search_stats(engine: SearchEngine = Depends(get_engine)):
    return engine.stats()


@router.get("/search/recent")
async def recent_searches(engine: SearchEngine = Depends(get_engine)):
    return {"recent_queries": engine.analytics.recent_queries()}


@router.delete("/search/cache")
async def clear_search_cache(engine: SearchEngine = Depends(get_engine)):
    engine.clear_cache()
    return {"cleared": True}


@router.get("/people/{person_id}", response_model=PersonRecord)
async def get_person(person_id: int, engine: SearchEngine = Depends(get_engine)):
    try:
        person = await engine.get_person(person_id)
    except RosterSearchError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if person is None:
        raise HTTPException(status_code=404, detail=f"Person {person_id} not found")
    return person
