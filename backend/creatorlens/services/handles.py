import logging
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

UNKNOWN_HANDLE = "unknown"


def _path_segments(url: str) -> tuple[str, list[str]]:
    """Return (path, non-empty segments). Raises ValueError on malformed URLs."""
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    parsed = urlparse(candidate)
    if not parsed.netloc or any(ch.isspace() for ch in parsed.netloc):
        raise ValueError(f"no host in {url!r}")
    parsed.port  # raises ValueError on a non-numeric port

    segments = [s.strip() for s in parsed.path.split("/") if s.strip()]
    return parsed.path, segments


# Path segments that are Instagram pages, not usernames
INSTAGRAM_RESERVED_PATHS = frozenset({"p", "reel", "reels", "explore", "stories", "accounts", "tv"})


def instagram_username(url: str) -> Optional[str]:
    """Lowercased account name from a profile URL.

    None when the URL is malformed, has no path, or points at a post or reel
    page such as /p/<code>/.
    """
    try:
        _, segments = _path_segments(url)
    except ValueError as e:
        logger.warning("Could not parse Instagram URL %r: %s", url, e)
        return None

    if not segments:
        logger.warning("Instagram URL %r has no username segment", url)
        return None
    username = segments[0].lower()
    if username in INSTAGRAM_RESERVED_PATHS:
        logger.warning("Instagram URL %r is a /%s/ page, not a profile", url, username)
        return None
    return username


def handle_from_instagram_url(url: str) -> str:
    return instagram_username(url) or UNKNOWN_HANDLE


def handle_from_youtube_url(url: str) -> str:
    """Handle for /@name URLs, otherwise the trailing path segment.

    Covers /channel/<id>, /c/<name> and /user/<name> by taking the last segment.
    """
    try:
        path, segments = _path_segments(url)
    except ValueError as e:
        logger.warning("Could not parse YouTube URL %r: %s", url, e)
        return UNKNOWN_HANDLE

    if path.startswith("/@"):
        handle = path[2:].split("/", 1)[0].strip()
    elif segments:
        handle = segments[-1]
    else:
        handle = ""

    if not handle:
        logger.warning("YouTube URL %r has no channel segment", url)
        return UNKNOWN_HANDLE
    return handle.lower()


def resolve_handle(
    youtube_url: Optional[str] = None,
    instagram_url: Optional[str] = None,
) -> Optional[str]:
    """Derive the cache key for a request.

    Instagram wins when both URLs are present. Returns None only when no
    URL was supplied at all.
    """
    if instagram_url:
        return handle_from_instagram_url(instagram_url)
    if youtube_url:
        return handle_from_youtube_url(youtube_url)
    return None
