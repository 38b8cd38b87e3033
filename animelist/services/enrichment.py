"""
Enrichment fetcher - fills in catalog metadata from the Jikan API.

For one title:

1. read its MAL id in a short transaction,
2. fetch /anime/{mal_id} outside any transaction, retrying rate limits,
   malformed bodies and transport errors with exponential backoff,
3. in a second transaction, store the metadata, link studio and genre tags
   (additively), and mark the title as fetched.

A title is marked as fetched even when the remote has no usable record, so a
sweep always makes progress and never loops on the same title.
"""

import asyncio
import logging
from collections.abc import Sequence

import httpx
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.core.exceptions import (
    AnimeNotFoundException,
    EnrichmentUnavailable,
    MalformedResponse,
    RateLimited,
    TransientFetchError,
)
from animelist.core.retry import RetryPolicy, SleepFn
from animelist.db.session import Database
from animelist.db.unit_of_work import run_transaction
from animelist.models.anime import Anime
from animelist.models.tag import TagCategory
from animelist.repositories.anime_repository import AnimeRepository
from animelist.repositories.anime_tag_repository import AnimeTagRepository
from animelist.repositories.tag_repository import TagRepository
from animelist.schemas.enrichment import EnrichmentResult, JikanAnime, PendingAnime, SweepResult
from animelist.services.metrics import MetricsCollector
from animelist.services.tag_classifier import TagClassifier

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.jikan.moe/v4"
DEFAULT_TIMEOUT = 15.0
DEFAULT_REQUEST_DELAY = 1.5

RETRYABLE_FETCH_ERRORS = (RateLimited, MalformedResponse, TransientFetchError)


class JikanClient:
    """
    Minimal async client for the Jikan v4 anime endpoint.

    Args:
        base_url: API root, without trailing slash
        timeout: Per-request timeout in seconds
        http_client: Pre-built httpx client (tests pass one with a mock
            transport); when omitted the client owns its own
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def fetch_anime(self, mal_id: int) -> JikanAnime:
        """
        Fetch one anime record.

        Raises:
            EnrichmentUnavailable: The remote has no record (404 or other 4xx)
            RateLimited: HTTP 429
            TransientFetchError: Transport failure or 5xx
            MalformedResponse: Body is not JSON or lacks a `data` object
        """
        url = f"{self.base_url}/anime/{mal_id}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise TransientFetchError(f"Request to {url} failed: {e}") from e

        status = response.status_code
        if status == 429:
            raise RateLimited(f"Rate limited fetching MAL {mal_id}")
        if status >= 500:
            raise TransientFetchError(f"Upstream error {status} fetching MAL {mal_id}")
        if status == 404:
            raise EnrichmentUnavailable(f"No record for MAL {mal_id}")
        if status >= 400:
            raise EnrichmentUnavailable(f"Request for MAL {mal_id} rejected with {status}")

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Invalid JSON for MAL {mal_id}") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise MalformedResponse(f"Response for MAL {mal_id} has no data object")

        try:
            return JikanAnime.model_validate(data)
        except ValidationError as e:
            raise MalformedResponse(f"Unexpected record shape for MAL {mal_id}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class EnrichmentFetcher:
    """
    Fetches and stores catalog metadata for imported titles.

    Args:
        database: Store handle
        client: Jikan client
        classifier: Colors for newly created studio and genre tags
        retry_policy: Retry for the network call (exponential by default)
        store_retry_policy: Retry for busy storage (linear by default)
        request_delay: Pause between titles during a sweep, in seconds
        sleep: Awaitable used for the sweep pause
        metrics: Optional collector for per-title outcomes
    """

    def __init__(
        self,
        database: Database,
        client: JikanClient,
        classifier: TagClassifier | None = None,
        retry_policy: RetryPolicy | None = None,
        store_retry_policy: RetryPolicy | None = None,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        sleep: SleepFn = asyncio.sleep,
        metrics: MetricsCollector | None = None,
    ):
        self.database = database
        self.client = client
        self.classifier = classifier or TagClassifier()
        self.retry_policy = retry_policy or RetryPolicy.exponential(4, 1.0, 30.0)
        self.store_retry_policy = store_retry_policy or RetryPolicy.linear(3, 0.2)
        self.request_delay = request_delay
        self.sleep = sleep
        self.metrics = metrics

    async def pending(self, limit: int | None = None) -> list[PendingAnime]:
        """Titles not yet attempted, oldest first."""
        async with self.database.transaction() as session:
            animes = await AnimeRepository(session).list_unfetched(limit)
            return [PendingAnime.model_validate(anime) for anime in animes]

    async def fetch_one(self, anime_id: int) -> EnrichmentResult | None:
        """
        Enrich one title.

        Returns:
            The stored metadata, or None when the remote had no usable record
            (the title is still marked as fetched)

        Raises:
            AnimeNotFoundException: If the title does not exist
        """
        mal_id = await run_transaction(
            self.database,
            lambda session: self._mal_id_of(session, anime_id),
            retry_policy=self.store_retry_policy,
        )

        record = await self._fetch_record(mal_id)

        result = await run_transaction(
            self.database,
            lambda session: self._store(session, anime_id, record),
            retry_policy=self.store_retry_policy,
        )

        if self.metrics is not None:
            self.metrics.record_enrichment(result is not None)
        return result

    async def _mal_id_of(self, session: AsyncSession, anime_id: int) -> int:
        anime = await AnimeRepository(session).get_by_id(anime_id, with_tags=False)
        if anime is None:
            raise AnimeNotFoundException(anime_id)
        return anime.mal_id

    async def _fetch_record(self, mal_id: int) -> JikanAnime | None:
        try:
            return await self.retry_policy.call(
                self.client.fetch_anime, mal_id, retry_on=RETRYABLE_FETCH_ERRORS
            )
        except EnrichmentUnavailable as e:
            logger.warning(f"Enrichment unavailable for MAL {mal_id}: {e}")
            return None

    async def _store(
        self, session: AsyncSession, anime_id: int, record: JikanAnime | None
    ) -> EnrichmentResult | None:
        anime = await AnimeRepository(session).get_by_id(anime_id, with_tags=False)
        if anime is None:
            raise AnimeNotFoundException(anime_id)

        anime.data_fetched = True
        if record is None:
            await session.flush()
            return None

        anime.title_english = record.title_english
        anime.title_japanese = record.title_japanese
        anime.image_url = record.image_url
        anime.synopsis = record.synopsis
        anime.trailer_url = record.trailer_url
        anime.year = record.year
        await session.flush()

        tags = TagRepository(session, self.classifier)
        links = AnimeTagRepository(session)
        await self._link_all(tags, links, anime, TagCategory.STUDIO, record.studio_names)
        await self._link_all(tags, links, anime, TagCategory.GENRE, record.genre_names)

        return EnrichmentResult(
            anime_id=anime.id,
            mal_id=anime.mal_id,
            title=anime.title,
            title_english=anime.title_english,
            title_japanese=anime.title_japanese,
            image_url=anime.image_url,
            synopsis=anime.synopsis,
            trailer_url=anime.trailer_url,
            year=anime.year,
            studios=record.studio_names,
            genres=record.genre_names,
        )

    @staticmethod
    async def _link_all(
        tags: TagRepository,
        links: AnimeTagRepository,
        anime: Anime,
        category: TagCategory,
        names: Sequence[str],
    ) -> None:
        for name in names:
            tag = await tags.get_or_create_in(name, category)
            if tag is not None:
                await links.link(anime.id, tag.id)

    async def sweep(self, limit: int | None = None) -> SweepResult:
        """
        Enrich every pending title (up to `limit`), pausing between requests.

        Per-title failures are counted and logged; the sweep itself does not
        raise for them.
        """
        pending = await self.pending(limit)
        result = SweepResult(total=len(pending))

        for index, item in enumerate(pending):
            if index > 0 and self.request_delay > 0:
                await self.sleep(self.request_delay)
            try:
                stored = await self.fetch_one(item.id)
            except AnimeNotFoundException:
                logger.info(f"Anime {item.id} was deleted during the sweep")
                result.failed += 1
                continue
            except Exception:
                logger.exception(f"Enrichment of MAL {item.mal_id} failed")
                if self.metrics is not None:
                    self.metrics.record_enrichment(False)
                result.failed += 1
                continue

            if stored is None:
                result.failed += 1
            else:
                result.updated += 1

        logger.info(
            f"Enrichment sweep finished: {result.updated} updated, "
            f"{result.failed} failed of {result.total}"
        )
        return result
