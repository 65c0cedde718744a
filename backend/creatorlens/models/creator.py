from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from creatorlens.db.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Creator(Base):
    __tablename__ = "creators"

    id = Column(Integer, primary_key=True, index=True)
    search_handle = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    avatar_url = Column(String)
    insight_history = Column(JSON, default=list)
    last_updated = Column(DateTime, default=_utcnow)

    # Legacy one-to-many shape: creator_id is unique on each child table, so
    # these lists hold at most one row.
    youtube_stats = relationship(
        "YoutubeStats", back_populates="creator", cascade="all, delete-orphan", lazy="selectin"
    )
    instagram_stats = relationship(
        "InstagramStats", back_populates="creator", cascade="all, delete-orphan", lazy="selectin"
    )
    persona = relationship(
        "AIPersona", back_populates="creator", uselist=False, cascade="all, delete-orphan", lazy="selectin"
    )


class YoutubeStats(Base):
    __tablename__ = "youtube_stats"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), unique=True, nullable=False)
    channel_id = Column(String)
    title = Column(String)
    description = Column(Text)
    custom_url = Column(String)
    thumbnail = Column(String)
    # Counts are stored as the strings the Data API returns
    subscriber_count = Column(String)
    view_count = Column(String)
    video_count = Column(String)
    hidden_subscriber_count = Column(Boolean, default=False)
    recent_videos = Column(JSON, default=list)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    creator = relationship("Creator", back_populates="youtube_stats")


class InstagramStats(Base):
    __tablename__ = "instagram_stats"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), unique=True, nullable=False)
    username = Column(String)
    full_name = Column(String)
    biography = Column(Text)
    profile_pic_url = Column(String)
    follower_count = Column(Integer, default=0)
    following_count = Column(Integer, default=0)
    posts_count = Column(Integer, default=0)
    engagement_rate = Column(Float, default=0.0)
    recent_posts = Column(JSON, default=list)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    creator = relationship("Creator", back_populates="instagram_stats")


class AIPersona(Base):
    __tablename__ = "ai_personas"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), unique=True, nullable=False)
    archetype = Column(String)
    summary = Column(Text)
    full_report = Column(JSON, default=dict)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    creator = relationship("Creator", back_populates="persona")
