"""Collapse storage and upstream shape variance into the response models.

Stored per-platform stats may come back from the store as a single row or as
a one-element list (older one-to-many schema). Everything here reduces them
to one object or None, so the rest of the pipeline never sees the ambiguity.
"""
from __future__ import annotations

from typing import Any, Optional

from creatorlens.schemas.analysis import (
    AnalysisResult,
    InstagramProfile,
    Persona,
    YoutubeProfile,
)


def first_or_none(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def to_number(value: Any) -> float:
    """Coerce API counts (often strings) to a number; junk becomes 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return 0
        return int(number) if number.is_integer() else number
    return 0


def _field(item: Any, *names: str) -> Any:
    for name in names:
        if isinstance(item, dict):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    return None


def derive_engagement_rate(recent_items: Optional[list], followers: Any) -> float:
    """(average likes of recent items / followers) * 100, two decimals."""
    follower_count = to_number(followers)
    items = recent_items or []
    if follower_count <= 0 or not items:
        return 0.0

    total_likes = sum(to_number(_field(item, "likes", "like_count", "likeCount")) for item in items)
    avg_likes = total_likes / len(items)
    return round(avg_likes / follower_count * 100, 2)


def video_engagement_rate(views: Any, likes: Any) -> float:
    """likes / views * 100 for a single video, two decimals."""
    view_count = to_number(views)
    if view_count <= 0:
        return 0.0
    return round(to_number(likes) / view_count * 100, 2)


def _as_dict(value: Any) -> Optional[dict]:
    if value is None:
        return None
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return dict(value)


def normalize_youtube(raw: Any) -> Optional[YoutubeProfile]:
    raw = first_or_none(raw)
    if raw is None:
        return None
    if isinstance(raw, YoutubeProfile):
        return raw

    data = _as_dict(raw)
    statistics = data.get("statistics")
    if statistics is None:
        # Stored row: counts live on the row itself
        statistics = {
            "view_count": data.get("view_count"),
            "subscriber_count": data.get("subscriber_count"),
            "video_count": data.get("video_count"),
            "hidden_subscriber_count": data.get("hidden_subscriber_count"),
        }

    channel_id = data.get("channel_id", data.get("id"))
    return YoutubeProfile.model_validate({
        "id": str(channel_id) if channel_id is not None else "",
        "title": data.get("title"),
        "description": data.get("description"),
        "custom_url": data.get("custom_url", data.get("customUrl")),
        "thumbnail": data.get("thumbnail"),
        "statistics": statistics,
        "recent_videos": data.get("recent_videos", data.get("recentVideos")) or [],
    })


def normalize_instagram(raw: Any) -> Optional[InstagramProfile]:
    raw = first_or_none(raw)
    if raw is None:
        return None
    if isinstance(raw, InstagramProfile):
        return raw

    data = _as_dict(raw)
    posts = data.get("recent_posts", data.get("recentPosts")) or []
    followers = data.get("followers", data.get("follower_count"))

    engagement_rate = data.get("engagement_rate", data.get("engagementRate"))
    if engagement_rate is None:
        engagement_rate = derive_engagement_rate(posts, followers)

    return InstagramProfile.model_validate({
        "username": data.get("username") or "",
        "full_name": data.get("full_name", data.get("fullName")),
        "biography": data.get("biography"),
        "profile_pic_url": data.get("profile_pic_url", data.get("profilePicUrl")),
        "followers": followers,
        "following": data.get("following", data.get("following_count")),
        "posts_count": data.get("posts_count", data.get("postsCount")),
        "engagement_rate": to_number(engagement_rate),
        "recent_posts": posts,
    })


def normalize_persona(raw: Any) -> Optional[Persona]:
    raw = first_or_none(raw)
    if raw is None:
        return None
    if isinstance(raw, Persona):
        return raw

    data = _as_dict(raw)
    if "full_report" in data:
        report = dict(data.get("full_report") or {})
        report.setdefault("archetype", data.get("archetype") or "Unknown")
        report.setdefault("summary", data.get("summary") or "Could not generate persona.")
        data = report
    return Persona.model_validate(data)


def has_platform_data(record: Optional[dict]) -> bool:
    if not record:
        return False
    return (
        first_or_none(record.get("youtube_stats")) is not None
        or first_or_none(record.get("instagram_stats")) is not None
    )


def normalize_record(record: dict) -> AnalysisResult:
    """Build the response envelope from a stored creator record."""
    return AnalysisResult(
        youtube=normalize_youtube(record.get("youtube_stats")),
        instagram=normalize_instagram(record.get("instagram_stats")),
        persona=normalize_persona(record.get("persona")),
    )
