"""
Pytest configuration and fixtures for the anime list tests.
"""

import random
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from animelist.config import Settings
from animelist.core.retry import RetryPolicy
from animelist.db.session import Database
from animelist.main import create_app
from animelist.schemas.imports import ImportEntry
from animelist.services.enrichment import EnrichmentFetcher, JikanClient
from animelist.services.import_service import ImportOrchestrator
from animelist.services.metrics import MetricsCollector
from animelist.services.reconciliation import ReconciliationEngine
from animelist.services.tag_classifier import TagClassifier

JIKAN_TEST_URL = "https://jikan.test/v4"


class JikanStub:
    """
    Scripted Jikan API behind an httpx.MockTransport.

    Responses are queued per MAL id and served in order; the last one is
    repeated once the queue is down to it. Unknown ids answer 404.
    """

    def __init__(self) -> None:
        self.scripts: dict[int, list[Callable[[httpx.Request], httpx.Response]]] = {}
        self.calls: list[int] = []

    def queue(self, mal_id: int, *responders: Callable[[httpx.Request], httpx.Response]) -> None:
        self.scripts.setdefault(mal_id, []).extend(responders)

    def respond_json(self, mal_id: int, payload: Any, status_code: int = 200, times: int = 1) -> None:
        for _ in range(times):
            self.queue(mal_id, lambda request: httpx.Response(status_code, json=payload))

    def respond_status(self, mal_id: int, status_code: int, times: int = 1) -> None:
        for _ in range(times):
            self.queue(mal_id, lambda request: httpx.Response(status_code, json={"status": status_code}))

    def respond_text(self, mal_id: int, body: str, times: int = 1) -> None:
        for _ in range(times):
            self.queue(mal_id, lambda request: httpx.Response(200, text=body))

    def fail_connect(self, mal_id: int, times: int = 1) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        for _ in range(times):
            self.queue(mal_id, _raise)

    def handler(self, request: httpx.Request) -> httpx.Response:
        mal_id = int(request.url.path.rstrip("/").rsplit("/", 1)[-1])
        self.calls.append(mal_id)
        script = self.scripts.get(mal_id)
        if not script:
            return httpx.Response(404, json={"status": 404, "message": "Resource does not exist"})
        responder = script.pop(0) if len(script) > 1 else script[0]
        return responder(request)


def build_jikan_record(
    mal_id: int,
    title_english: str | None = "Cowboy Bebop",
    studios: list[str] | None = None,
    genres: list[str] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    """A Jikan /anime/{id} response body."""
    data = {
        "mal_id": mal_id,
        "title": "Cowboy Bebop",
        "title_english": title_english,
        "title_japanese": "カウボーイビバップ",
        "images": {
            "jpg": {
                "image_url": f"https://cdn.test/{mal_id}.jpg",
                "large_image_url": f"https://cdn.test/{mal_id}l.jpg",
            }
        },
        "synopsis": "In the year 2071, humanity has colonized the solar system.",
        "trailer": {"url": f"https://video.test/{mal_id}"},
        "year": 1998,
        "studios": [{"mal_id": n, "type": "anime", "name": name} for n, name in enumerate(studios or [])],
        "genres": [{"mal_id": n, "type": "anime", "name": name} for n, name in enumerate(genres or [])],
    }
    data.update(overrides)
    return {"data": data}


def build_entry(mal_id: int | None, title: str = "Cowboy Bebop", **fields: Any) -> ImportEntry:
    """An ImportEntry with sensible defaults."""
    values = {
        "mal_id": mal_id,
        "title": title,
        "media_type": "TV",
        "total_episodes": 26,
        "watched_episodes": 26,
        "score": 9,
        "status_label": "Completed",
    }
    values.update(fields)
    return ImportEntry(**values)


MAL_EXPORT = b"""<?xml version="1.0" encoding="UTF-8" ?>
<myanimelist>
    <myinfo>
        <user_id>123</user_id>
        <user_name>tester</user_name>
        <user_export_type>1</user_export_type>
    </myinfo>
    <anime>
        <series_animedb_id>1</series_animedb_id>
        <series_title><![CDATA[Cowboy Bebop]]></series_title>
        <series_type>TV</series_type>
        <series_episodes>26</series_episodes>
        <my_id>0</my_id>
        <my_watched_episodes>26</my_watched_episodes>
        <my_start_date>0000-00-00</my_start_date>
        <my_finish_date>2019-03-01</my_finish_date>
        <my_score>9</my_score>
        <my_status>Completed</my_status>
        <my_rewatching>0</my_rewatching>
        <my_rewatching_ep>0</my_rewatching_ep>
        <update_on_import>1</update_on_import>
    </anime>
    <anime>
        <series_animedb_id>5</series_animedb_id>
        <series_title><![CDATA[Cowboy Bebop: Tengoku no Tobira]]></series_title>
        <series_type>Movie</series_type>
        <series_episodes>1</series_episodes>
        <my_watched_episodes>0</my_watched_episodes>
        <my_start_date>0000-00-00</my_start_date>
        <my_finish_date>0000-00-00</my_finish_date>
        <my_score>0</my_score>
        <my_status>Plan to Watch</my_status>
        <my_rewatching>0</my_rewatching>
        <my_rewatching_ep>0</my_rewatching_ep>
    </anime>
</myanimelist>
"""


@pytest.fixture
def jikan_record() -> Callable[..., dict[str, Any]]:
    return build_jikan_record


@pytest.fixture
def make_entry() -> Callable[..., ImportEntry]:
    return build_entry


@pytest.fixture
def mal_export() -> bytes:
    return MAL_EXPORT


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """A fresh SQLite database file per test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def classifier() -> TagClassifier:
    return TagClassifier(random.Random(1234))


@pytest.fixture
def sleep_calls() -> list[float]:
    """Delays requested from the fake sleep, in order."""
    return []


@pytest.fixture
def fake_sleep(sleep_calls: list[float]) -> Callable[[float], Awaitable[None]]:
    async def _sleep(seconds: float) -> None:
        sleep_calls.append(seconds)

    return _sleep


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def engine(database, classifier, fake_sleep) -> ReconciliationEngine:
    return ReconciliationEngine(
        database,
        classifier=classifier,
        retry_policy=RetryPolicy.linear(3, 0.2, sleep=fake_sleep),
    )


@pytest.fixture
def orchestrator(engine, metrics) -> ImportOrchestrator:
    return ImportOrchestrator(engine, metrics=metrics)


@pytest.fixture
def jikan() -> JikanStub:
    return JikanStub()


@pytest_asyncio.fixture(scope="function")
async def jikan_client(jikan: JikanStub) -> AsyncGenerator[JikanClient, None]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(jikan.handler))
    client = JikanClient(JIKAN_TEST_URL, http_client=http_client)
    yield client
    await http_client.aclose()


@pytest.fixture
def fetcher(database, jikan_client, classifier, fake_sleep, metrics) -> EnrichmentFetcher:
    return EnrichmentFetcher(
        database,
        jikan_client,
        classifier=classifier,
        retry_policy=RetryPolicy.exponential(4, 1.0, 30.0, sleep=fake_sleep),
        store_retry_policy=RetryPolicy.linear(3, 0.2, sleep=fake_sleep),
        request_delay=1.5,
        sleep=fake_sleep,
        metrics=metrics,
    )


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings with no real waiting anywhere."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        JIKAN_BASE_URL=JIKAN_TEST_URL,
        IMPORT_BACKOFF_BASE=0,
        ENRICHMENT_REQUEST_DELAY=0,
        ENRICHMENT_BACKOFF_BASE=0,
        TAG_COLOR_SEED=7,
        MAX_UPLOAD_SIZE=64 * 1024,
    )


@pytest.fixture
def app(test_settings, database, jikan_client) -> FastAPI:
    return create_app(test_settings, database=database, jikan_client=jikan_client)


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
