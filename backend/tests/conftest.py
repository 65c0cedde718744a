import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from creatorlens.db.database import Base
from creatorlens.models import creator as creator_models  # noqa: F401
from creatorlens.schemas.analysis import InstagramProfile, Persona, YoutubeProfile


class FakeFetcher:
    def __init__(self, platform, result=None, error=None, delay=0.0):
        self.platform = platform
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FakePersonaGenerator:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def generate(self, youtube, instagram):
        self.calls.append((youtube, instagram))
        if self.error is not None:
            raise self.error
        return self.result


class FakeStore:
    def __init__(self, records=None, get_error=None, upsert_error=None):
        self.records = dict(records or {})
        self.get_error = get_error
        self.upsert_error = upsert_error
        self.get_calls = []
        self.upserts = []

    async def get(self, handle):
        self.get_calls.append(handle)
        if self.get_error is not None:
            raise self.get_error
        return self.records.get(handle)

    async def upsert(self, handle, identity, youtube=None, instagram=None, persona=None, insight=None):
        self.upserts.append({
            "handle": handle,
            "identity": identity,
            "youtube": youtube,
            "instagram": instagram,
            "persona": persona,
            "insight": insight,
        })
        if self.upsert_error is not None:
            raise self.upsert_error
        return len(self.upserts)


def build_youtube_profile(**overrides) -> YoutubeProfile:
    data = {
        "id": "UCacmeacmeacmeacmeacme01",
        "title": "Acme Studio",
        "description": "We build things on camera.",
        "custom_url": "@acme",
        "thumbnail": "https://yt3.example.com/acme.jpg",
        "statistics": {
            "view_count": "150000",
            "subscriber_count": "1200",
            "video_count": "42",
            "hidden_subscriber_count": False,
        },
        "recent_videos": [
            {
                "id": "vid1",
                "title": "Building a workbench",
                "published_at": "2026-09-01T10:00:00Z",
                "view_count": "1000",
                "like_count": "50",
                "comment_count": "5",
                "duration": "PT10M5S",
                "tags": ["woodworking"],
            },
        ],
    }
    data.update(overrides)
    return YoutubeProfile.model_validate(data)


def build_instagram_profile(**overrides) -> InstagramProfile:
    data = {
        "username": "acme",
        "full_name": "Acme IG",
        "biography": "Makers.",
        "profile_pic_url": "https://ig.example.com/acme.jpg",
        "followers": 1000,
        "following": 10,
        "posts_count": 30,
        "engagement_rate": 5.0,
        "recent_posts": [
            {"id": "p1", "shortcode": "abc", "caption": "New build", "likes": 40, "comments": 2},
            {"id": "p2", "shortcode": "def", "caption": "Shop tour", "likes": 60, "comments": 4},
        ],
    }
    data.update(overrides)
    return InstagramProfile.model_validate(data)


def build_persona(**overrides) -> Persona:
    data = {
        "niche": {"primary": "Woodworking", "secondary": "DIY"},
        "contentStyle": {"form": "Long-form", "tone": "Teaching", "vibe": "Fun"},
        "archetype": "The Educator",
        "topics": ["workbenches", "joinery"],
        "audience": {"type": "Hobbyists", "level": "Beginner"},
        "consistency": {"pattern": "Weekly", "frequency": "High"},
        "engagement": {"behavior": "Highly interactive", "rate": "High"},
        "swot": {"strengths": ["Clear explanations"], "weaknesses": ["Long intros"]},
        "summary": "Acme teaches beginner woodworking in long-form builds.",
    }
    data.update(overrides)
    return Persona.model_validate(data)


def stored_record(handle="acme", youtube=None, instagram=None, persona=None) -> dict:
    """A creator record in the shape CacheStore.get returns."""
    return {
        "id": 1,
        "search_handle": handle,
        "name": "Acme Studio",
        "avatar_url": None,
        "insight_history": [{"date": "2026-10-01T00:00:00+00:00", "summary": "s", "engagement_score": "High"}],
        "last_updated": datetime(2026, 10, 1, tzinfo=timezone.utc),
        "youtube_stats": youtube,
        "instagram_stats": instagram,
        "persona": persona,
    }


@pytest.fixture
def youtube_profile():
    return build_youtube_profile()


@pytest.fixture
def instagram_profile():
    return build_instagram_profile()


@pytest.fixture
def persona():
    return build_persona()


@pytest.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as s:
        yield s
    await engine.dispose()
