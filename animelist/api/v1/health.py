"""
Health and metrics endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from sqlalchemy import func, select, text

from animelist.dependencies import DatabaseDep, DbSession, Metrics
from animelist.models.anime import Anime

router = APIRouter()


@router.get("/health")
async def health_check(db: DbSession, database: DatabaseDep):
    """
    Service health check endpoint.

    Returns:
        {"status": "ok", ...} when service is healthy
        {"status": "degraded", "issues": [...]} when there are issues
    """
    issues = []

    # Check database connectivity
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        issues.append(f"Database: {str(e)}")

    if issues:
        return {
            "status": "degraded",
            "issues": issues,
        }

    response = {
        "status": "ok",
        "database": "sqlite" if database.is_sqlite else "postgresql",
    }
    journal_mode = await database.journal_mode()
    if journal_mode is not None:
        response["journalMode"] = journal_mode

    return response


async def _library_counts(db: DbSession) -> tuple[int, int]:
    total = (await db.execute(select(func.count(Anime.id)))).scalar() or 0
    pending = (
        await db.execute(select(func.count(Anime.id)).where(Anime.data_fetched.is_(False)))
    ).scalar() or 0
    return total, pending


@router.get("/metrics")
async def metrics(db: DbSession, collector: Metrics):
    """
    Request and pipeline counters as JSON, plus library size.
    """
    total, pending = await _library_counts(db)

    metrics_data = collector.get_metrics()
    metrics_data["library"] = {
        "total_anime": total,
        "pending_enrichment": pending,
    }
    return metrics_data


@router.get("/metrics/prometheus", response_class=PlainTextResponse)
async def metrics_prometheus(db: DbSession, collector: Metrics):
    """
    Prometheus text exposition format endpoint.
    Compatible with Prometheus scraping.
    """
    text_output = collector.to_prometheus()

    total, pending = await _library_counts(db)
    text_output += "# HELP animelist_anime_total Titles in the library\n"
    text_output += "# TYPE animelist_anime_total gauge\n"
    text_output += f"animelist_anime_total {total}\n\n"
    text_output += "# HELP animelist_enrichment_pending Titles not yet enriched\n"
    text_output += "# TYPE animelist_enrichment_pending gauge\n"
    text_output += f"animelist_enrichment_pending {pending}\n"

    return PlainTextResponse(
        content=text_output,
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
