"""
Tests for enrichment endpoints.
"""

import pytest
from httpx import AsyncClient

ENTRIES = [
    {"malId": 1, "title": "Cowboy Bebop", "mediaType": "TV", "score": 9, "statusLabel": "Completed"},
    {"malId": 5, "title": "Cowboy Bebop: The Movie", "mediaType": "Movie", "statusLabel": "Plan to Watch"},
]


async def _seed(client: AsyncClient) -> None:
    response = await client.post("/api/v1/import/entries", json={"entries": ENTRIES})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_pending(client: AsyncClient):
    await _seed(client)

    response = await client.get("/api/v1/enrichment/pending")
    limited = await client.get("/api/v1/enrichment/pending", params={"limit": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [item["malId"] for item in data["items"]] == [1, 5]
    assert limited.json()["total"] == 1


@pytest.mark.asyncio
async def test_fetch_one(client: AsyncClient, jikan, jikan_record):
    await _seed(client)
    jikan.respond_json(1, jikan_record(1, studios=["Sunrise"], genres=["Action", "Sci-Fi"]))

    response = await client.post("/api/v1/enrichment/1")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["result"]["studios"] == ["Sunrise"]
    assert data["result"]["imageUrl"] == "https://cdn.test/1l.jpg"

    anime = (await client.get("/api/v1/anime/1")).json()
    assert anime["dataFetched"] is True
    assert anime["titleEnglish"] == "Cowboy Bebop"
    assert anime["year"] == 1998
    tag_names = {tag["name"]: tag for tag in anime["tags"]}
    assert tag_names["Sunrise"]["isStudio"] is True
    assert tag_names["Sci-Fi"]["isGenre"] is True

    pending = (await client.get("/api/v1/enrichment/pending")).json()
    assert [item["malId"] for item in pending["items"]] == [5]


@pytest.mark.asyncio
async def test_fetch_one_missing_remote_record(client: AsyncClient, jikan):
    await _seed(client)

    response = await client.post("/api/v1/enrichment/2")

    assert response.status_code == 200
    assert response.json() == {"success": False, "result": None}
    assert jikan.calls == [5]
    anime = (await client.get("/api/v1/anime/2")).json()
    assert anime["dataFetched"] is True
    assert anime["synopsis"] is None


@pytest.mark.asyncio
async def test_fetch_one_unknown_anime(client: AsyncClient, jikan):
    response = await client.post("/api/v1/enrichment/99")

    assert response.status_code == 404
    assert jikan.calls == []


@pytest.mark.asyncio
async def test_sweep(client: AsyncClient, jikan, jikan_record):
    await _seed(client)
    jikan.respond_json(1, jikan_record(1, studios=["Sunrise"]))
    jikan.respond_status(5, 500, times=10)

    response = await client.post("/api/v1/enrichment/sweep")

    assert response.status_code == 200
    assert response.json() == {"total": 2, "updated": 1, "failed": 1}
    assert (await client.get("/api/v1/enrichment/pending")).json()["total"] == 0

    again = await client.post("/api/v1/enrichment/sweep")
    assert again.json() == {"total": 0, "updated": 0, "failed": 0}
