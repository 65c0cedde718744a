import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from creatorlens.config import get_settings
from creatorlens.errors import FetcherError
from creatorlens.schemas.analysis import InstagramPost, InstagramProfile
from creatorlens.services.handles import instagram_username
from creatorlens.services.normalize import derive_engagement_rate

logger = logging.getLogger(__name__)

_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)


def _count(node: dict, *keys: str) -> int:
    for key in keys:
        edge = node.get(key)
        if isinstance(edge, dict) and edge.get("count") is not None:
            return edge["count"]
    return 0


class InstagramService:
    """Public profile data from Instagram's web profile endpoint."""

    platform = "instagram"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        self.base_url = settings.instagram_base_url
        self.app_id = settings.instagram_app_id
        self.max_posts = settings.instagram_max_posts
        self.timeout = settings.fetch_timeout_seconds
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "User-Agent": _USER_AGENT,
            "X-IG-App-ID": self.app_id,
            "Accept": "application/json",
        }

    async def fetch(self, url: str) -> Optional[InstagramProfile]:
        """Return the profile, or None when the account does not exist.

        Raises FetcherError on transport errors, rate limiting and other
        non-404 failures.
        """
        username = instagram_username(url)
        if username is None:
            logger.info("No Instagram username in %r", url)
            return None

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                resp = await client.get(
                    f"{self.base_url}/users/web_profile_info/",
                    params={"username": username},
                    headers=self._headers(),
                )
                if resp.status_code == 404:
                    logger.info("Instagram user %s not found", username)
                    return None
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPError as e:
            raise FetcherError(self.platform, f"request failed: {e}") from e
        except ValueError as e:
            raise FetcherError(self.platform, "response was not JSON") from e

        user = (payload.get("data") or {}).get("user")
        if not user:
            logger.info("Instagram user %s not found", username)
            return None
        return self._parse_user(user)

    def _parse_post(self, node: dict) -> InstagramPost:
        caption_edges = node.get("edge_media_to_caption", {}).get("edges") or []
        caption = caption_edges[0].get("node", {}).get("text", "") if caption_edges else ""
        taken_at = node.get("taken_at_timestamp")
        return InstagramPost(
            id=str(node.get("id", "")),
            shortcode=node.get("shortcode"),
            caption=caption,
            thumbnail=node.get("thumbnail_src") or node.get("display_url"),
            likes=_count(node, "edge_liked_by", "edge_media_preview_like"),
            comments=_count(node, "edge_media_to_comment"),
            views=node.get("video_view_count") or 0,
            timestamp=datetime.fromtimestamp(taken_at, tz=timezone.utc).isoformat() if taken_at else None,
        )

    def _parse_user(self, user: dict) -> InstagramProfile:
        timeline = user.get("edge_owner_to_timeline_media") or {}
        edges = (timeline.get("edges") or [])[: self.max_posts]
        posts = [self._parse_post(edge.get("node", {})) for edge in edges]
        followers = _count(user, "edge_followed_by")

        return InstagramProfile(
            username=user.get("username") or "",
            full_name=user.get("full_name", ""),
            biography=user.get("biography", ""),
            profile_pic_url=user.get("profile_pic_url_hd") or user.get("profile_pic_url"),
            followers=followers,
            following=_count(user, "edge_follow"),
            posts_count=timeline.get("count", 0),
            engagement_rate=derive_engagement_rate(posts, followers),
            recent_posts=posts,
        )
