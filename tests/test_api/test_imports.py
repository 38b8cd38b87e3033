"""
Tests for import endpoints.
"""

import pytest
from httpx import AsyncClient


def _upload(content: bytes, filename: str = "animelist.xml") -> dict:
    return {"file": (filename, content, "application/xml")}


@pytest.mark.asyncio
async def test_import_mal_export(client: AsyncClient, mal_export: bytes):
    """Test importing a MAL XML export."""
    response = await client.post("/api/v1/import", files=_upload(mal_export))

    assert response.status_code == 200
    data = response.json()
    assert data["created"] == 2
    assert data["updated"] == 0
    assert data["failed"] == 0
    assert data["total"] == 2
    assert data["errors"] == []

    listing = (await client.get("/api/v1/anime", params={"sortBy": "malId"})).json()
    bebop, movie = listing["items"]
    assert bebop["myFinishDate"] == "2019-03-01"
    assert bebop["myStartDate"] is None
    assert movie["myStatus"] == "Plan to Watch"


@pytest.mark.asyncio
async def test_reimport_updates_existing(client: AsyncClient, mal_export: bytes):
    await client.post("/api/v1/import", files=_upload(mal_export))

    response = await client.post("/api/v1/import", files=_upload(mal_export))

    assert response.status_code == 200
    assert response.json()["created"] == 0
    assert response.json()["updated"] == 2
    assert (await client.get("/api/v1/anime")).json()["total"] == 2


@pytest.mark.asyncio
async def test_import_malformed_document(client: AsyncClient):
    broken = await client.post("/api/v1/import", files=_upload(b"<myanimelist><anime>"))
    wrong_root = await client.post("/api/v1/import", files=_upload(b"<html><body/></html>"))

    assert broken.status_code == 400
    assert broken.json()["error"] == "parse_error"
    assert wrong_root.status_code == 400
    assert (await client.get("/api/v1/anime")).json()["total"] == 0


@pytest.mark.asyncio
async def test_import_empty_file(client: AsyncClient):
    response = await client.post("/api/v1/import", files=_upload(b"   "))

    assert response.status_code == 400
    assert response.json()["error"] == "validation_failed"


@pytest.mark.asyncio
async def test_import_too_large(client: AsyncClient):
    response = await client.post("/api/v1/import", files=_upload(b" " * (64 * 1024 + 1)))

    assert response.status_code == 413
    assert response.json()["error"] == "payload_too_large"


@pytest.mark.asyncio
async def test_import_requires_file(client: AsyncClient):
    response = await client.post("/api/v1/import")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_import_single_entry(client: AsyncClient):
    response = await client.post(
        "/api/v1/import/entries",
        json={"entries": {"malId": "30", "title": " Evangelion ", "mediaType": "TV", "score": "8"}},
    )

    assert response.status_code == 200
    assert response.json()["created"] == 1
    anime = (await client.get("/api/v1/anime/1")).json()
    assert anime["malId"] == 30
    assert anime["title"] == "Evangelion"
    assert anime["myScore"] == 8
    assert anime["myStatus"] == "Plan to Watch"


@pytest.mark.asyncio
async def test_import_entries_skips_missing_mal_id(client: AsyncClient):
    response = await client.post(
        "/api/v1/import/entries",
        json={
            "entries": [
                {"malId": 1, "title": "Cowboy Bebop", "statusLabel": "Completed"},
                {"title": "No id"},
                {"malId": 0, "title": "Zero id"},
                {"malId": 5, "title": "Bebop Movie", "statusLabel": "Plan to Watch"},
            ]
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 4
    assert data["created"] == 2
    assert data["failed"] == 0
    assert (await client.get("/api/v1/anime")).json()["total"] == 2
