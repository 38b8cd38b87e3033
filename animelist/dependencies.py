"""
FastAPI dependency injection functions.
Provides common dependencies used across endpoints.

Long-lived collaborators (database handle, classifier, metrics, Jikan client)
live on app.state; the pipeline services are cheap and built per request.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.config import Settings
from animelist.core.retry import RetryPolicy
from animelist.db.session import Database, get_database, get_db
from animelist.services.enrichment import EnrichmentFetcher
from animelist.services.import_service import ImportOrchestrator
from animelist.services.metrics import MetricsCollector
from animelist.services.reconciliation import ReconciliationEngine
from animelist.services.tag_classifier import TagClassifier


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_classifier(request: Request) -> TagClassifier:
    return request.app.state.classifier


def get_metrics(request: Request) -> MetricsCollector:
    return request.app.state.metrics


# Type aliases for cleaner endpoint signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
DatabaseDep = Annotated[Database, Depends(get_database)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Classifier = Annotated[TagClassifier, Depends(get_classifier)]
Metrics = Annotated[MetricsCollector, Depends(get_metrics)]


def get_import_orchestrator(
    database: DatabaseDep,
    settings: AppSettings,
    classifier: Classifier,
    metrics: Metrics,
) -> ImportOrchestrator:
    engine = ReconciliationEngine(
        database,
        classifier=classifier,
        retry_policy=RetryPolicy.linear(
            settings.IMPORT_MAX_ATTEMPTS,
            settings.IMPORT_BACKOFF_BASE,
        ),
    )
    return ImportOrchestrator(engine, metrics=metrics)


def get_enrichment_fetcher(
    request: Request,
    database: DatabaseDep,
    settings: AppSettings,
    classifier: Classifier,
    metrics: Metrics,
) -> EnrichmentFetcher:
    return EnrichmentFetcher(
        database,
        request.app.state.jikan_client,
        classifier=classifier,
        retry_policy=RetryPolicy.exponential(
            settings.ENRICHMENT_MAX_ATTEMPTS,
            settings.ENRICHMENT_BACKOFF_BASE,
            settings.ENRICHMENT_BACKOFF_MAX,
        ),
        store_retry_policy=RetryPolicy.linear(
            settings.IMPORT_MAX_ATTEMPTS,
            settings.IMPORT_BACKOFF_BASE,
        ),
        request_delay=settings.ENRICHMENT_REQUEST_DELAY,
        metrics=metrics,
    )


Orchestrator = Annotated[ImportOrchestrator, Depends(get_import_orchestrator)]
Fetcher = Annotated[EnrichmentFetcher, Depends(get_enrichment_fetcher)]
