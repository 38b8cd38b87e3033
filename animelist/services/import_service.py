"""
Import orchestrator - runs a batch of entries through the reconciliation
engine and aggregates the outcome.

Entries are processed one at a time in document order. A failed entry is
counted and reported; it never stops the batch. Entries without a MAL id are
skipped silently: they count toward `total` only, not toward created,
updated or failed, and produce no error message.
"""

import logging
from collections.abc import Sequence

from animelist.core.exceptions import EntryFailure
from animelist.schemas.imports import ImportEntry, ImportResult
from animelist.services.export_parser import parse_export
from animelist.services.metrics import MetricsCollector
from animelist.services.reconciliation import ReconcileOutcome, ReconciliationEngine

logger = logging.getLogger(__name__)


class ImportOrchestrator:
    """Drives parser -> reconciliation engine over one batch."""

    def __init__(self, engine: ReconciliationEngine, metrics: MetricsCollector | None = None):
        self.engine = engine
        self.metrics = metrics

    async def import_document(self, document: str | bytes) -> ImportResult:
        """
        Parse a MAL XML export and import every entry.

        Raises:
            ParseError: If the document is not a valid export; nothing is
                imported in that case
        """
        entries = parse_export(document)
        return await self.import_entries(entries)

    async def import_entries(self, entries: Sequence[ImportEntry]) -> ImportResult:
        """
        Import already-parsed entries.

        Returns:
            ImportResult with created/updated/failed counts, total entries
            received and one message per failed entry
        """
        result = ImportResult(total=len(entries))
        skipped = 0

        for entry in entries:
            if entry.mal_id is None:
                skipped += 1
                logger.debug(f"Skipping entry without MAL id: {entry.title}")
                continue

            try:
                outcome = await self.engine.reconcile(entry)
            except EntryFailure as e:
                logger.warning(f"Import of MAL {entry.mal_id} failed: {e}")
                result.failed += 1
                result.errors.append(str(e))
                continue
            except Exception:
                logger.exception(f"Unexpected error importing MAL {entry.mal_id}")
                result.failed += 1
                result.errors.append(str(EntryFailure(entry.title, "unexpected error")))
                continue

            if outcome == ReconcileOutcome.CREATED:
                result.created += 1
            else:
                result.updated += 1

        logger.info(
            f"Import finished: {result.created} created, {result.updated} updated, "
            f"{result.failed} failed, {skipped} skipped of {result.total}"
        )
        if self.metrics is not None:
            self.metrics.record_import(result.created, result.updated, result.failed, skipped)

        return result
