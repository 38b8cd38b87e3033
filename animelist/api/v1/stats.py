"""
Statistics endpoint.
"""

from fastapi import APIRouter

from animelist.dependencies import DbSession
from animelist.schemas.stats import StatsResponse
from animelist.services.stats_service import StatsService

router = APIRouter()


@router.get("", response_model=StatsResponse)
async def get_stats(db: DbSession):
    """Score distribution, tag and studio rankings and watch time."""
    return await StatsService(db).compute()
