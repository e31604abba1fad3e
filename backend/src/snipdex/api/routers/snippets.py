"""Snippet search and lookup endpoints."""

from fastapi import APIRouter, Depends, Query

from snipdex.api.deps import get_catalog_service, get_settings
from snipdex.api.schemas import OkResponse, SearchData, SearchHit, SnippetOut
from snipdex.config import Config
from snipdex.service import CatalogService

router = APIRouter(prefix="/api/snippets", tags=["snippets"])


@router.get("/search", response_model=OkResponse[SearchData])
async def search_snippets(
    q: str = Query("", description="Search query; empty lists every snippet"),
    limit: int | None = Query(None, ge=1, le=1000),
    service: CatalogService = Depends(get_catalog_service),
    settings: Config = Depends(get_settings),
) -> OkResponse[SearchData]:
    """Rank snippets by relevance to the query."""
    if limit is None:
        limit = settings.search.result_limit

    results = await service.search(q, limit=limit)
    hits = [SearchHit(snippet=SnippetOut.from_snippet(r.snippet), score=r.score) for r in results]
    return OkResponse[SearchData](data=SearchData(query=q, results=hits, total=len(hits)))


@router.get("/{snippet_id}", response_model=OkResponse[SnippetOut])
async def get_snippet(
    snippet_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> OkResponse[SnippetOut]:
    """Fetch one snippet by id."""
    snippet = await service.get_by_id(snippet_id)
    return OkResponse[SnippetOut](data=SnippetOut.from_snippet(snippet))
