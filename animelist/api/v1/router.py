"""
API v1 Router - Aggregates all v1 endpoints.
Base Path: /api/v1
"""

from fastapi import APIRouter

from animelist.api.v1 import anime, enrichment, health, imports, stats, tags

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(imports.router, prefix="/import", tags=["import"])
api_router.include_router(enrichment.router, prefix="/enrichment", tags=["enrichment"])
api_router.include_router(anime.router, prefix="/anime", tags=["anime"])
api_router.include_router(tags.router, prefix="/tags", tags=["tags"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
