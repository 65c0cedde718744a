from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, dumps camelCase with by_alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _count_as_str(v) -> str:
    if v is None or v == "":
        return "0"
    return str(v)


def _count_as_int(v) -> int:
    if v is None or v == "":
        return 0
    try:
        return int(float(v))
    except (TypeError, ValueError):
        return 0


# --- YouTube ---

class YoutubeVideo(CamelModel):
    id: str = ""
    title: str = ""
    thumbnail: Optional[str] = None
    published_at: Optional[str] = None
    view_count: str = "0"
    like_count: str = "0"
    comment_count: str = "0"
    duration: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    engagement_rate: float = 0.0

    @field_validator("view_count", "like_count", "comment_count", mode="before")
    @classmethod
    def coerce_counts(cls, v):
        return _count_as_str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v):
        return v or []


class YoutubeStatistics(CamelModel):
    view_count: str = "0"
    subscriber_count: str = "0"
    video_count: str = "0"
    hidden_subscriber_count: bool = False

    @field_validator("view_count", "subscriber_count", "video_count", mode="before")
    @classmethod
    def coerce_counts(cls, v):
        return _count_as_str(v)

    @field_validator("hidden_subscriber_count", mode="before")
    @classmethod
    def coerce_hidden(cls, v):
        return bool(v)


class YoutubeProfile(CamelModel):
    platform: Literal["youtube"] = "youtube"
    id: str = ""
    title: str = ""
    description: str = ""
    custom_url: Optional[str] = None
    thumbnail: Optional[str] = None
    statistics: YoutubeStatistics = Field(default_factory=YoutubeStatistics)
    recent_videos: list[YoutubeVideo] = Field(default_factory=list, max_length=10)

    @field_validator("title", "description", mode="before")
    @classmethod
    def default_text(cls, v):
        return v or ""

    @field_validator("recent_videos", mode="before")
    @classmethod
    def limit_videos(cls, v):
        return list(v or [])[:10]


# --- Instagram ---

class InstagramPost(CamelModel):
    id: str = ""
    shortcode: Optional[str] = None
    caption: str = ""
    thumbnail: Optional[str] = None
    likes: int = 0
    comments: int = 0
    views: int = 0
    timestamp: Optional[str] = None

    @field_validator("likes", "comments", "views", mode="before")
    @classmethod
    def coerce_counts(cls, v):
        return _count_as_int(v)

    @field_validator("caption", mode="before")
    @classmethod
    def default_caption(cls, v):
        return v or ""


class InstagramProfile(CamelModel):
    platform: Literal["instagram"] = "instagram"
    username: str
    full_name: str = ""
    biography: str = ""
    profile_pic_url: Optional[str] = None
    followers: int = 0
    following: int = 0
    posts_count: int = 0
    engagement_rate: float = 0.0
    recent_posts: list[InstagramPost] = Field(default_factory=list, max_length=6)

    @field_validator("followers", "following", "posts_count", mode="before")
    @classmethod
    def coerce_counts(cls, v):
        return _count_as_int(v)

    @field_validator("full_name", "biography", mode="before")
    @classmethod
    def default_text(cls, v):
        return v or ""

    @field_validator("recent_posts", mode="before")
    @classmethod
    def limit_posts(cls, v):
        return list(v or [])[:6]


PlatformProfile = YoutubeProfile | InstagramProfile


# --- Persona ---

class PersonaNiche(CamelModel):
    primary: str = "Unknown"
    secondary: str = "Unknown"


class PersonaContentStyle(CamelModel):
    form: str = "Unknown"
    tone: str = "Unknown"
    vibe: str = "Unknown"


class PersonaAudience(CamelModel):
    type: str = "General"
    level: str = "All"


class PersonaConsistency(CamelModel):
    pattern: str = "Unknown"
    frequency: str = "Unknown"


class PersonaEngagement(CamelModel):
    behavior: str = "Unknown"
    rate: str = "Unknown"


class PersonaSwot(CamelModel):
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class Persona(CamelModel):
    """Strategic summary of a creator.

    The all-default instance is the fallback persona handed out when
    generation fails, so consumers never see a null persona once generation
    was attempted.
    """

    niche: PersonaNiche = Field(default_factory=PersonaNiche)
    content_style: PersonaContentStyle = Field(default_factory=PersonaContentStyle)
    archetype: str = "Unknown"
    topics: list[str] = Field(default_factory=list)
    audience: PersonaAudience = Field(default_factory=PersonaAudience)
    consistency: PersonaConsistency = Field(default_factory=PersonaConsistency)
    engagement: PersonaEngagement = Field(default_factory=PersonaEngagement)
    swot: PersonaSwot = Field(default_factory=PersonaSwot)
    summary: str = "Could not generate persona."


def fallback_persona() -> Persona:
    return Persona()


# --- Request / response ---

class AnalyzeRequest(CamelModel):
    youtube_url: Optional[str] = None
    instagram_url: Optional[str] = None
    force_refresh: bool = False

    @field_validator("youtube_url", "instagram_url", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AnalysisResult(CamelModel):
    youtube: Optional[YoutubeProfile] = None
    instagram: Optional[InstagramProfile] = None
    persona: Optional[Persona] = None


class InsightNote(CamelModel):
    date: str
    summary: str
    engagement_score: str
