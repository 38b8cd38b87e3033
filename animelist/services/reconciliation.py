"""
Reconciliation engine - idempotent create-or-update of one import entry.

Each entry is applied in its own transaction:

1. look up the title by MAL id,
2. overwrite the import-owned fields (enrichment fields are left alone),
3. replace the title's type link and its status link with the ones matching
   the entry, creating the tags on first use,
4. report "created" if the title did not exist before, else "updated".

Free-form, studio and genre links are never touched here.
"""

import enum
import logging
from functools import partial
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.core.exceptions import EntryFailure, TransientStoreError
from animelist.core.retry import RetryPolicy
from animelist.db.session import Database
from animelist.db.unit_of_work import run_transaction
from animelist.models.tag import TagCategory
from animelist.repositories.anime_repository import AnimeRepository
from animelist.repositories.anime_tag_repository import AnimeTagRepository
from animelist.repositories.tag_repository import TagRepository
from animelist.schemas.imports import ImportEntry
from animelist.services.tag_classifier import TagClassifier

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE = 0.2


class ReconcileOutcome(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"


class ReconciliationEngine:
    """
    Applies import entries to the store.

    Args:
        database: Store handle providing per-entry transactions
        classifier: Status mapping and tag colors
        retry_policy: Retry applied to busy/locked storage (linear backoff
            by default)
    """

    def __init__(
        self,
        database: Database,
        classifier: TagClassifier | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.database = database
        self.classifier = classifier or TagClassifier()
        self.retry_policy = retry_policy or RetryPolicy.linear(
            DEFAULT_MAX_ATTEMPTS, DEFAULT_BACKOFF_BASE
        )

    async def reconcile(self, entry: ImportEntry) -> ReconcileOutcome:
        """
        Create or update the title described by `entry`.

        Raises:
            EntryFailure: If the entry has no MAL id, or the store rejected it
                after the retry policy gave up
        """
        if entry.mal_id is None:
            raise EntryFailure(entry.title, "missing MAL id")

        try:
            return await run_transaction(
                self.database,
                partial(self._apply, entry=entry),
                retry_policy=self.retry_policy,
            )
        except TransientStoreError as e:
            raise EntryFailure(entry.title, "database is busy") from e
        except IntegrityError as e:
            raise EntryFailure(entry.title, "conflicting write") from e
        except SQLAlchemyError as e:
            raise EntryFailure(entry.title, f"storage error ({type(e).__name__})") from e

    async def _apply(self, session: AsyncSession, entry: ImportEntry) -> ReconcileOutcome:
        animes = AnimeRepository(session)
        tags = TagRepository(session, self.classifier)
        links = AnimeTagRepository(session)

        anime, created = await animes.upsert(entry.mal_id, self.import_values(entry))

        if entry.media_type:
            await self._replace_link(tags, links, anime.id, TagCategory.TYPE, entry.media_type)
        await self._replace_link(tags, links, anime.id, TagCategory.STATUS, anime.my_status)

        outcome = ReconcileOutcome.CREATED if created else ReconcileOutcome.UPDATED
        logger.debug(f"Reconciled MAL {entry.mal_id} ({entry.title}): {outcome.value}")
        return outcome

    def import_values(self, entry: ImportEntry) -> dict[str, Any]:
        """Import-owned column values for an entry."""
        return {
            "title": entry.title,
            "type": entry.media_type,
            "episodes": entry.total_episodes,
            "my_score": entry.score,
            "my_status": self.classifier.classify(entry.status_label),
            "my_watched_episodes": entry.watched_episodes,
            "my_start_date": entry.start_date,
            "my_finish_date": entry.finish_date,
            "my_rewatching": entry.rewatching,
            "my_rewatching_ep": entry.rewatch_count,
        }

    async def _replace_link(
        self,
        tags: TagRepository,
        links: AnimeTagRepository,
        anime_id: int,
        category: TagCategory,
        name: str,
    ) -> None:
        await links.remove_category(anime_id, category)
        tag = await tags.get_or_create_in(name, category)
        if tag is not None:
            await links.link(anime_id, tag.id)
