"""
Enrichment endpoints - fetch catalog metadata from Jikan.
"""

from fastapi import APIRouter, Query

from animelist.dependencies import Fetcher
from animelist.schemas.enrichment import FetchOneResponse, PendingListResponse, SweepResult

router = APIRouter()


@router.get("/pending", response_model=PendingListResponse)
async def list_pending(
    fetcher: Fetcher,
    limit: int | None = Query(default=None, ge=1, description="Maximum number of titles"),
):
    """List titles whose metadata has not been fetched yet."""
    items = await fetcher.pending(limit)
    return PendingListResponse(items=items, total=len(items))


@router.post("/sweep", response_model=SweepResult)
async def run_sweep(
    fetcher: Fetcher,
    limit: int | None = Query(default=None, ge=1, description="Maximum titles for this run"),
):
    """
    Enrich pending titles one by one with a pause between requests.

    Safe to interrupt and re-run: already attempted titles are skipped.
    """
    return await fetcher.sweep(limit)


@router.post("/{anime_id}", response_model=FetchOneResponse)
async def fetch_one(anime_id: int, fetcher: Fetcher):
    """
    Enrich one title.

    `success` is false when the remote had no usable record; the title is
    marked as fetched either way.
    """
    result = await fetcher.fetch_one(anime_id)
    return FetchOneResponse(success=result is not None, result=result)
