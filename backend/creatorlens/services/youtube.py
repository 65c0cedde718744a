import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

from creatorlens.config import get_settings
from creatorlens.errors import FetcherError
from creatorlens.schemas.analysis import YoutubeProfile, YoutubeVideo
from creatorlens.services.normalize import video_engagement_rate

logger = logging.getLogger(__name__)


def extract_identifier(url: str) -> Optional[str]:
    """Pull the channel identifier out of a channel URL, case preserved.

    Returns "@name" for handle URLs, the id/name for /channel, /c and /user
    URLs, and the first segment otherwise.
    """
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        segments = [s for s in urlparse(candidate).path.split("/") if s]
    except ValueError:
        return None

    if not segments:
        return None
    if segments[0].startswith("@"):
        return segments[0]
    if segments[0] in ("channel", "c", "user"):
        return segments[1] if len(segments) > 1 else None
    return segments[0]


def _is_channel_id(identifier: str) -> bool:
    return identifier.startswith("UC") and len(identifier) == 24


class YoutubeService:
    """Channel stats and recent uploads from the YouTube Data API v3."""

    platform = "youtube"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        self.api_key = settings.youtube_api_key
        self.base_url = settings.youtube_base_url
        self.max_videos = settings.youtube_max_videos
        self.timeout = settings.fetch_timeout_seconds
        self._transport = transport

    def _is_configured(self) -> bool:
        return bool(self.api_key)

    async def fetch(self, url: str) -> Optional[YoutubeProfile]:
        """Return the channel profile, or None if the channel does not exist.

        Raises FetcherError on transport and API errors.
        """
        if not self._is_configured():
            raise FetcherError(self.platform, "YOUTUBE_API_KEY is not configured")

        identifier = extract_identifier(url)
        if not identifier:
            logger.info("No channel identifier in %r", url)
            return None

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                channel_id = identifier if _is_channel_id(identifier) else await self._resolve_channel_id(client, identifier)
                if not channel_id:
                    logger.info("YouTube channel %r not found", identifier)
                    return None

                channel = await self._get_channel(client, channel_id)
                if channel is None:
                    logger.info("YouTube channel id %s not found", channel_id)
                    return None

                uploads = channel.get("contentDetails", {}).get("relatedPlaylists", {}).get("uploads")
                video_ids = await self._get_playlist_video_ids(client, uploads) if uploads else []
                videos = await self._get_videos(client, video_ids) if video_ids else []
        except httpx.HTTPError as e:
            raise FetcherError(self.platform, f"request failed: {e}") from e
        except ValueError as e:
            raise FetcherError(self.platform, "response was not JSON") from e

        return self._parse_channel(channel, videos)

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict) -> dict:
        resp = await client.get(f"{self.base_url}/{path}", params={**params, "key": self.api_key})
        resp.raise_for_status()
        return resp.json()

    async def _resolve_channel_id(self, client: httpx.AsyncClient, identifier: str) -> Optional[str]:
        data = await self._get(client, "search", {
            "part": "snippet",
            "type": "channel",
            "q": identifier,
            "maxResults": 1,
        })
        items = data.get("items") or []
        if not items:
            return None
        return items[0].get("snippet", {}).get("channelId")

    async def _get_channel(self, client: httpx.AsyncClient, channel_id: str) -> Optional[dict]:
        data = await self._get(client, "channels", {
            "part": "snippet,contentDetails,statistics",
            "id": channel_id,
        })
        items = data.get("items") or []
        return items[0] if items else None

    async def _get_playlist_video_ids(self, client: httpx.AsyncClient, playlist_id: str) -> list[str]:
        data = await self._get(client, "playlistItems", {
            "part": "contentDetails",
            "playlistId": playlist_id,
            "maxResults": self.max_videos,
        })
        return [
            item["contentDetails"]["videoId"]
            for item in data.get("items") or []
            if item.get("contentDetails", {}).get("videoId")
        ]

    async def _get_videos(self, client: httpx.AsyncClient, video_ids: list[str]) -> list[YoutubeVideo]:
        # One batched call for all ids
        data = await self._get(client, "videos", {
            "part": "snippet,statistics,contentDetails",
            "id": ",".join(video_ids[: self.max_videos]),
        })
        videos = []
        for item in data.get("items") or []:
            snippet = item.get("snippet", {})
            stats = item.get("statistics", {})
            thumbs = snippet.get("thumbnails", {})
            videos.append(YoutubeVideo(
                id=item.get("id", ""),
                title=snippet.get("title", ""),
                thumbnail=(thumbs.get("medium") or thumbs.get("default") or {}).get("url"),
                published_at=snippet.get("publishedAt"),
                view_count=stats.get("viewCount", "0"),
                like_count=stats.get("likeCount", "0"),
                comment_count=stats.get("commentCount", "0"),
                engagement_rate=video_engagement_rate(stats.get("viewCount"), stats.get("likeCount")),
                duration=item.get("contentDetails", {}).get("duration"),
                tags=snippet.get("tags") or [],
            ))
        return videos

    def _parse_channel(self, channel: dict, videos: list[YoutubeVideo]) -> YoutubeProfile:
        snippet = channel.get("snippet", {})
        stats = channel.get("statistics", {})
        thumbs = snippet.get("thumbnails", {})
        return YoutubeProfile(
            id=channel.get("id", ""),
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            custom_url=snippet.get("customUrl"),
            thumbnail=(thumbs.get("high") or thumbs.get("default") or {}).get("url"),
            statistics={
                "view_count": stats.get("viewCount"),
                "subscriber_count": stats.get("subscriberCount"),
                "video_count": stats.get("videoCount"),
                "hidden_subscriber_count": stats.get("hiddenSubscriberCount", False),
            },
            recent_videos=videos,
        )
