"""
Import endpoints - MAL XML upload and batched JSON entries.
"""

import logging

from fastapi import APIRouter, File, UploadFile

from animelist.core.exceptions import PayloadTooLargeException, ValidationException
from animelist.dependencies import AppSettings, Orchestrator
from animelist.schemas.imports import ImportEntriesRequest, ImportResult

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=ImportResult)
async def import_export(
    orchestrator: Orchestrator,
    settings: AppSettings,
    file: UploadFile = File(..., description="MyAnimeList XML export"),
):
    """
    Import a MyAnimeList XML export.

    Every entry is created or updated by its MAL id. Entries that fail are
    counted and reported without stopping the import. A malformed document
    is rejected with 400 before anything is written.
    """
    content = await file.read()

    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise PayloadTooLargeException(settings.MAX_UPLOAD_SIZE)
    if not content.strip():
        raise ValidationException("Uploaded file is empty")

    logger.info(f"Importing MAL export '{file.filename}' ({len(content)} bytes)")
    return await orchestrator.import_document(content)


@router.post("/entries", response_model=ImportResult)
async def import_entries(body: ImportEntriesRequest, orchestrator: Orchestrator):
    """
    Import pre-parsed entries.

    `entries` may be a single entry object or a list of them; field names
    follow the camelCase entry schema (malId, title, mediaType, ...).
    """
    return await orchestrator.import_entries(body.normalized())
