"""
Tests for the reconciliation engine and the repositories underneath it.
"""

import pytest
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import OperationalError

from animelist.core.exceptions import EntryFailure, TransientStoreError
from animelist.core.retry import RetryPolicy
from animelist.db.unit_of_work import run_transaction
from animelist.models.anime import Anime
from animelist.models.tag import Tag, TagCategory
from animelist.repositories import AnimeRepository, AnimeTagRepository, TagRepository
from animelist.services.reconciliation import ReconcileOutcome


def _locked() -> OperationalError:
    return OperationalError("INSERT INTO anime ...", {}, Exception("database is locked"))


async def _load(database, mal_id: int) -> Anime | None:
    async with database.transaction() as session:
        return await AnimeRepository(session).get_by_mal_id(mal_id, with_tags=True)


def _tag_names(anime: Anime, category: TagCategory | None = None) -> list[str]:
    return sorted(t.name for t in anime.tags if category is None or t.category == category)


async def _link_tag(database, classifier, anime_id: int, name: str, category: TagCategory) -> None:
    async with database.transaction() as session:
        tag = await TagRepository(session, classifier).get_or_create(name, category)
        await AnimeTagRepository(session).link(anime_id, tag.id)


@pytest.mark.asyncio
async def test_first_import_creates_title_and_system_tags(engine, database, make_entry):
    outcome = await engine.reconcile(make_entry(1))

    assert outcome == ReconcileOutcome.CREATED
    anime = await _load(database, 1)
    assert anime.title == "Cowboy Bebop"
    assert anime.type == "TV"
    assert anime.episodes == 26
    assert anime.my_score == 9
    assert anime.my_status == "Completed"
    assert anime.data_fetched is False
    assert _tag_names(anime, TagCategory.TYPE) == ["TV"]
    assert _tag_names(anime, TagCategory.STATUS) == ["Completed"]

    status_tag = next(t for t in anime.tags if t.is_status)
    assert status_tag.color_key == "Completed"


@pytest.mark.asyncio
async def test_reconcile_is_idempotent(engine, database, make_entry):
    entry = make_entry(1)

    first = await engine.reconcile(entry)
    before = await _load(database, 1)
    second = await engine.reconcile(entry)
    after = await _load(database, 1)

    assert first == ReconcileOutcome.CREATED
    assert second == ReconcileOutcome.UPDATED
    assert after.id == before.id
    assert _tag_names(after) == _tag_names(before)
    assert after.my_score == before.my_score

    async with database.transaction() as session:
        anime_count = (await session.execute(select(func.count(Anime.id)))).scalar()
        tag_count = (await session.execute(select(func.count(Tag.id)))).scalar()
    assert anime_count == 1
    assert tag_count == 2


@pytest.mark.asyncio
async def test_type_tag_is_exclusive(engine, database, make_entry):
    await engine.reconcile(make_entry(1, media_type="TV"))
    await engine.reconcile(make_entry(1, media_type="Movie"))

    anime = await _load(database, 1)
    assert anime.type == "Movie"
    assert _tag_names(anime, TagCategory.TYPE) == ["Movie"]

    # The old tag survives, it just is no longer linked
    async with database.transaction() as session:
        assert await TagRepository(session).get_by_name("TV") is not None


@pytest.mark.asyncio
async def test_entry_without_type_keeps_existing_type_link(engine, database, make_entry):
    await engine.reconcile(make_entry(1, media_type="TV"))
    await engine.reconcile(make_entry(1, media_type=None))

    anime = await _load(database, 1)
    assert _tag_names(anime, TagCategory.TYPE) == ["TV"]


@pytest.mark.asyncio
async def test_status_change_replaces_status_link(engine, database, make_entry):
    await engine.reconcile(make_entry(1, status_label="Watching", watched_episodes=10))
    watching = await _load(database, 1)
    assert _tag_names(watching, TagCategory.STATUS) == ["Watching"]

    await engine.reconcile(make_entry(1, status_label="Completed", watched_episodes=26))
    completed = await _load(database, 1)

    assert completed.my_status == "Completed"
    assert completed.my_watched_episodes == 26
    assert _tag_names(completed, TagCategory.STATUS) == ["Completed"]


@pytest.mark.asyncio
async def test_status_synonym_and_default(engine, database, make_entry):
    await engine.reconcile(make_entry(1, status_label="Currently Watching"))
    await engine.reconcile(make_entry(2, status_label=None))

    assert (await _load(database, 1)).my_status == "Watching"
    assert (await _load(database, 2)).my_status == "Plan to Watch"


@pytest.mark.asyncio
async def test_reimport_preserves_user_studio_and_genre_links(engine, database, classifier, make_entry):
    await engine.reconcile(make_entry(1))
    anime = await _load(database, 1)
    await _link_tag(database, classifier, anime.id, "Favorite", TagCategory.CUSTOM)
    await _link_tag(database, classifier, anime.id, "Sunrise", TagCategory.STUDIO)
    await _link_tag(database, classifier, anime.id, "Sci-Fi", TagCategory.GENRE)

    await engine.reconcile(make_entry(1, status_label="Dropped", media_type="ONA"))

    reloaded = await _load(database, 1)
    assert _tag_names(reloaded, TagCategory.CUSTOM) == ["Favorite"]
    assert _tag_names(reloaded, TagCategory.STUDIO) == ["Sunrise"]
    assert _tag_names(reloaded, TagCategory.GENRE) == ["Sci-Fi"]
    assert _tag_names(reloaded, TagCategory.STATUS) == ["Dropped"]
    assert _tag_names(reloaded, TagCategory.TYPE) == ["ONA"]


@pytest.mark.asyncio
async def test_reimport_leaves_enrichment_fields_alone(engine, database, make_entry):
    await engine.reconcile(make_entry(1))
    async with database.transaction() as session:
        anime = await AnimeRepository(session).get_by_mal_id(1)
        anime.title_english = "Cowboy Bebop"
        anime.synopsis = "Space bounty hunters."
        anime.year = 1998
        anime.data_fetched = True

    await engine.reconcile(make_entry(1, title="Cowboy Bebop (TV)", score=10))

    anime = await _load(database, 1)
    assert anime.title == "Cowboy Bebop (TV)"
    assert anime.my_score == 10
    assert anime.title_english == "Cowboy Bebop"
    assert anime.synopsis == "Space bounty hunters."
    assert anime.year == 1998
    assert anime.data_fetched is True


@pytest.mark.asyncio
async def test_reimport_overwrites_import_owned_fields(engine, database, make_entry):
    await engine.reconcile(make_entry(1, score=9, watched_episodes=26))
    await engine.reconcile(make_entry(1, score=0, watched_episodes=0, total_episodes=None))

    anime = await _load(database, 1)
    assert anime.my_score == 0
    assert anime.my_watched_episodes == 0
    assert anime.episodes is None


@pytest.mark.asyncio
async def test_missing_natural_key_raises_entry_failure(engine, make_entry):
    with pytest.raises(EntryFailure) as exc_info:
        await engine.reconcile(make_entry(None, title="Nameless"))

    assert str(exc_info.value) == 'Failed to import "Nameless": missing MAL id'


@pytest.mark.asyncio
async def test_busy_store_is_retried_with_linear_backoff(engine, database, make_entry, sleep_calls, monkeypatch):
    attempts = 0
    real_apply = engine._apply

    async def locked_twice(session, entry):
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise _locked()
        return await real_apply(session, entry=entry)

    monkeypatch.setattr(engine, "_apply", locked_twice)

    outcome = await engine.reconcile(make_entry(1))

    assert outcome == ReconcileOutcome.CREATED
    assert attempts == 3
    assert sleep_calls == pytest.approx([0.2, 0.4])
    assert await _load(database, 1) is not None


@pytest.mark.asyncio
async def test_busy_store_exhausted_becomes_entry_failure(engine, database, make_entry, sleep_calls, monkeypatch):
    async def always_locked(session, entry):
        raise _locked()

    monkeypatch.setattr(engine, "_apply", always_locked)

    with pytest.raises(EntryFailure) as exc_info:
        await engine.reconcile(make_entry(1))

    assert exc_info.value.reason == "database is busy"
    assert sleep_calls == pytest.approx([0.2, 0.4])
    assert await _load(database, 1) is None


@pytest.mark.asyncio
async def test_other_storage_errors_are_not_retried(engine, make_entry, sleep_calls, monkeypatch):
    async def broken(session, entry):
        raise OperationalError("SELECT", {}, Exception("no such table: anime"))

    monkeypatch.setattr(engine, "_apply", broken)

    with pytest.raises(EntryFailure) as exc_info:
        await engine.reconcile(make_entry(1))

    assert exc_info.value.reason == "storage error (OperationalError)"
    assert sleep_calls == []


@pytest.mark.asyncio
async def test_run_transaction_reraises_after_ceiling(database, fake_sleep, sleep_calls):
    calls = 0

    async def work(session):
        nonlocal calls
        calls += 1
        raise _locked()

    with pytest.raises(TransientStoreError):
        await run_transaction(database, work, retry_policy=RetryPolicy.linear(4, 0.5, sleep=fake_sleep))

    assert calls == 4
    assert sleep_calls == pytest.approx([0.5, 1.0, 1.5])


@pytest.mark.asyncio
async def test_tag_get_or_create_recovers_from_concurrent_insert(database, classifier, monkeypatch):
    async with database.transaction() as session:
        winner = await TagRepository(session, classifier).get_or_create("Action", TagCategory.GENRE)
        winner_id = winner.id

    async with database.transaction() as session:
        repo = TagRepository(session, classifier)
        real_get_by_name = repo.get_by_name
        lookups = 0

        async def stale_first(name):
            nonlocal lookups
            lookups += 1
            if lookups == 1:
                return None
            return await real_get_by_name(name)

        monkeypatch.setattr(repo, "get_by_name", stale_first)
        tag = await repo.get_or_create("Action", TagCategory.GENRE)

    assert tag.id == winner_id
    assert lookups == 2


@pytest.mark.asyncio
async def test_existing_tag_keeps_its_category(database, classifier):
    async with database.transaction() as session:
        repo = TagRepository(session, classifier)
        created = await repo.get_or_create("Music", TagCategory.TYPE)
        again = await repo.get_or_create("Music", TagCategory.GENRE)

    assert again.id == created.id
    assert again.is_type is True
    assert again.is_genre is False


@pytest.mark.asyncio
async def test_link_is_idempotent(engine, database, classifier, make_entry):
    await engine.reconcile(make_entry(1))
    anime = await _load(database, 1)

    async with database.transaction() as session:
        tag = await TagRepository(session, classifier).get_or_create("Favorite", TagCategory.CUSTOM)
        links = AnimeTagRepository(session)
        assert await links.link(anime.id, tag.id) is True
        assert await links.link(anime.id, tag.id) is False
        assert await links.tag_ids(anime.id, TagCategory.CUSTOM) == {tag.id}


@pytest.mark.asyncio
async def test_type_named_like_a_free_form_tag_is_not_linked(engine, database, classifier, make_entry):
    await engine.reconcile(make_entry(1))
    tagged = await _load(database, 1)
    await _link_tag(database, classifier, tagged.id, "Web", TagCategory.CUSTOM)

    await engine.reconcile(make_entry(2, media_type="TV"))
    await engine.reconcile(make_entry(2, media_type="Web"))

    anime = await _load(database, 2)
    assert _tag_names(anime, TagCategory.TYPE) == []
    assert _tag_names(anime, TagCategory.CUSTOM) == []
    assert _tag_names(anime, TagCategory.STATUS) == ["Completed"]
    assert _tag_names(await _load(database, 1), TagCategory.CUSTOM) == ["Web"]


@pytest.mark.asyncio
async def test_lookup_without_tags_leaves_them_unloaded(engine, database, make_entry):
    await engine.reconcile(make_entry(1))

    async with database.transaction() as session:
        anime = await AnimeRepository(session).get_by_mal_id(1)

        assert "tags" in inspect(anime).unloaded
