from sqlalchemy import func, select

from conftest import build_instagram_profile, build_persona, build_youtube_profile
from creatorlens.models.creator import AIPersona, Creator, InstagramStats, YoutubeStats
from creatorlens.services.analysis import build_insight
from creatorlens.services.cache_store import CacheStore
from creatorlens.services.normalize import has_platform_data, normalize_record


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


async def test_get_missing_handle_returns_none(session):
    assert await CacheStore(session).get("nobody") is None


async def test_upsert_then_get_round_trips_profiles(session):
    store = CacheStore(session)
    youtube = build_youtube_profile()
    instagram = build_instagram_profile()
    persona = build_persona()

    creator_id = await store.upsert(
        "Acme",
        {"name": "Acme Studio", "avatar_url": youtube.thumbnail},
        youtube=youtube,
        instagram=instagram,
        persona=persona,
        insight=build_insight(persona),
    )
    record = await store.get("acme")

    assert record["id"] == creator_id
    assert record["search_handle"] == "acme"
    assert record["name"] == "Acme Studio"
    assert isinstance(record["youtube_stats"], list)
    assert len(record["youtube_stats"]) == 1
    assert has_platform_data(record)

    result = normalize_record(record)
    assert result.youtube == youtube
    assert result.instagram == instagram
    assert result.persona == persona


async def test_repeated_saves_update_in_place(session):
    store = CacheStore(session)
    persona = build_persona()

    first_id = await store.upsert(
        "acme", {"name": "Acme"}, youtube=build_youtube_profile(), persona=persona, insight=build_insight(persona)
    )
    second_id = await store.upsert(
        "acme",
        {"name": "Acme Renamed"},
        youtube=build_youtube_profile(title="Acme Renamed"),
        instagram=build_instagram_profile(),
        persona=persona,
        insight=build_insight(persona),
    )

    assert first_id == second_id
    assert await _count(session, Creator) == 1
    assert await _count(session, YoutubeStats) == 1
    assert await _count(session, InstagramStats) == 1
    assert await _count(session, AIPersona) == 1

    record = await store.get("acme")
    assert record["name"] == "Acme Renamed"
    assert record["youtube_stats"][0]["title"] == "Acme Renamed"
    assert len(record["insight_history"]) == 2


async def test_upsert_without_persona_or_insight(session):
    store = CacheStore(session)

    await store.upsert("solo", {"name": None}, instagram=build_instagram_profile())
    record = await store.get("solo")

    assert record["name"] == "solo"
    assert record["persona"] is None
    assert record["youtube_stats"] == []
    assert record["insight_history"] == []
    assert normalize_record(record).instagram.username == "acme"


async def test_separate_handles_get_separate_records(session):
    store = CacheStore(session)

    a = await store.upsert("alpha", {"name": "Alpha"}, youtube=build_youtube_profile())
    b = await store.upsert("beta", {"name": "Beta"}, youtube=build_youtube_profile())

    assert a != b
    assert await _count(session, Creator) == 2
    assert await _count(session, YoutubeStats) == 2
