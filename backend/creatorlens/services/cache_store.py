import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, inspect as sa_inspect
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from creatorlens.errors import CacheStoreError
from creatorlens.models.creator import Creator, YoutubeStats, InstagramStats, AIPersona
from creatorlens.schemas.analysis import InstagramProfile, Persona, YoutubeProfile

logger = logging.getLogger(__name__)


def _row_to_dict(row) -> dict:
    return {attr.key: getattr(row, attr.key) for attr in sa_inspect(row).mapper.column_attrs}


class CacheStore:
    """Last known analysis per handle, backed by the relational store.

    One creators row per handle (unique on search_handle); every child table
    is unique on creator_id so repeated saves update in place. Concurrent
    writers are not serialized: the last successful write per row wins.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self, model):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(model)
        if dialect == "sqlite":
            return sqlite_insert(model)
        raise CacheStoreError(f"Upsert is not supported for dialect {dialect!r}")

    async def get(self, handle: str) -> Optional[dict]:
        """Return the stored record for a handle, nested rows included.

        youtube_stats and instagram_stats keep the storage shape (a list);
        callers normalize them.
        """
        stmt = (
            select(Creator)
            .where(Creator.search_handle == handle.lower())
            .options(
                selectinload(Creator.youtube_stats),
                selectinload(Creator.instagram_stats),
                selectinload(Creator.persona),
            )
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Could not read creator {handle!r}") from e

        creator = result.scalars().first()
        if creator is None:
            return None

        record = _row_to_dict(creator)
        record["insight_history"] = list(creator.insight_history or [])
        record["youtube_stats"] = [_row_to_dict(r) for r in creator.youtube_stats]
        record["instagram_stats"] = [_row_to_dict(r) for r in creator.instagram_stats]
        record["persona"] = _row_to_dict(creator.persona) if creator.persona else None
        logger.debug(
            "Cache read %s: youtube=%s instagram=%s",
            handle, bool(record["youtube_stats"]), bool(record["instagram_stats"]),
        )
        return record

    async def upsert(
        self,
        handle: str,
        identity: dict,
        youtube: Optional[YoutubeProfile] = None,
        instagram: Optional[InstagramProfile] = None,
        persona: Optional[Persona] = None,
        insight: Optional[dict] = None,
    ) -> int:
        """Save one analysis and return the creator id."""
        clean_handle = handle.lower()
        now = datetime.now(timezone.utc)

        try:
            # Read-then-write without a transaction around both: a concurrent
            # save can drop one history entry.
            history = await self.session.scalar(
                select(Creator.insight_history).where(Creator.search_handle == clean_handle)
            )
            history = list(history or [])
            if insight:
                history.append(insight)

            values = {
                "name": identity.get("name") or clean_handle,
                "avatar_url": identity.get("avatar_url"),
                "insight_history": history,
                "last_updated": now,
            }
            stmt = self._insert(Creator).values(search_handle=clean_handle, **values)
            stmt = stmt.on_conflict_do_update(index_elements=["search_handle"], set_=values)
            creator_id = (await self.session.execute(stmt.returning(Creator.id))).scalar_one()

            if youtube is not None:
                await self._upsert_child(YoutubeStats, creator_id, {
                    "channel_id": youtube.id,
                    "title": youtube.title,
                    "description": youtube.description,
                    "custom_url": youtube.custom_url,
                    "thumbnail": youtube.thumbnail,
                    "subscriber_count": youtube.statistics.subscriber_count,
                    "view_count": youtube.statistics.view_count,
                    "video_count": youtube.statistics.video_count,
                    "hidden_subscriber_count": youtube.statistics.hidden_subscriber_count,
                    "recent_videos": [v.model_dump() for v in youtube.recent_videos],
                    "updated_at": now,
                })

            if instagram is not None:
                await self._upsert_child(InstagramStats, creator_id, {
                    "username": instagram.username,
                    "full_name": instagram.full_name,
                    "biography": instagram.biography,
                    "profile_pic_url": instagram.profile_pic_url,
                    "follower_count": instagram.followers,
                    "following_count": instagram.following,
                    "posts_count": instagram.posts_count,
                    "engagement_rate": instagram.engagement_rate,
                    "recent_posts": [p.model_dump() for p in instagram.recent_posts],
                    "updated_at": now,
                })

            if persona is not None:
                await self._upsert_child(AIPersona, creator_id, {
                    "archetype": persona.archetype,
                    "summary": persona.summary,
                    "full_report": persona.model_dump(),
                    "updated_at": now,
                })

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise CacheStoreError(f"Could not save creator {clean_handle!r}") from e

        logger.info("Saved analysis for %s (creator_id=%s)", clean_handle, creator_id)
        return creator_id

    async def _upsert_child(self, model, creator_id: int, values: dict) -> None:
        stmt = self._insert(model).values(creator_id=creator_id, **values)
        stmt = stmt.on_conflict_do_update(index_elements=["creator_id"], set_=values)
        await self.session.execute(stmt)
