import pytest

from creatorlens.services.handles import (
    UNKNOWN_HANDLE,
    handle_from_instagram_url,
    handle_from_youtube_url,
    instagram_username,
    resolve_handle,
)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/@Acme", "acme"),
        ("https://youtube.com/@acme/videos", "acme"),
        ("youtube.com/@AcmeStudio", "acmestudio"),
        ("https://www.youtube.com/channel/UCabcDEF1234567890abcdef", "ucabcdef1234567890abcdef"),
        ("https://www.youtube.com/c/AcmeTV", "acmetv"),
        ("https://www.youtube.com/user/AcmeUser/", "acmeuser"),
        ("https://www.youtube.com/AcmeLegacy", "acmelegacy"),
        ("  https://youtube.com/@Acme  ", "acme"),
    ],
)
def test_youtube_url_shapes(url, expected):
    assert handle_from_youtube_url(url) == expected


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.instagram.com/Acme.Studio/", "acme.studio"),
        ("https://instagram.com/acme?igsh=abc123", "acme"),
        ("instagram.com/acme_makes", "acme_makes"),
        ("https://www.instagram.com/acme/reels/", "acme"),
    ],
)
def test_instagram_url_shapes(url, expected):
    assert handle_from_instagram_url(url) == expected


@pytest.mark.parametrize(
    "url",
    [
        "http://[::1",
        "not a url",
        "https://youtube.com/",
        "https://youtube.com/@",
        "https://youtube.com:notaport/@acme",
    ],
)
def test_malformed_youtube_urls_fall_back_to_unknown(url):
    assert handle_from_youtube_url(url) == UNKNOWN_HANDLE


def test_malformed_instagram_url_falls_back_to_unknown():
    assert handle_from_instagram_url("https://instagram.com") == UNKNOWN_HANDLE
    assert handle_from_instagram_url("http://[::1/acme") == UNKNOWN_HANDLE


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/@Acme",
        "https://www.youtube.com/channel/UCabcDEF1234567890abcdef",
        "https://www.youtube.com/c/AcmeTV",
        "https://www.youtube.com/user/AcmeUser",
    ],
)
def test_resolution_is_deterministic(url):
    first = resolve_handle(youtube_url=url)
    assert first == resolve_handle(youtube_url=url)
    assert first == first.strip().lower()


def test_instagram_wins_when_both_urls_given():
    handle = resolve_handle(
        youtube_url="https://youtube.com/@acme_yt",
        instagram_url="https://instagram.com/acme_ig",
    )
    assert handle == "acme_ig"


def test_malformed_instagram_still_wins_over_youtube():
    handle = resolve_handle(
        youtube_url="https://youtube.com/@acme",
        instagram_url="https://instagram.com/",
    )
    assert handle == UNKNOWN_HANDLE


def test_no_urls_resolves_to_none():
    assert resolve_handle() is None
    assert resolve_handle(youtube_url="", instagram_url=None) is None


@pytest.mark.parametrize(
    "url",
    [
        "https://www.instagram.com/p/Cxyz123/",
        "https://instagram.com/reel/Cabc/",
        "https://instagram.com/explore/tags/diy/",
        "https://instagram.com/stories/acme/123/",
    ],
)
def test_instagram_post_urls_do_not_become_handles(url):
    assert instagram_username(url) is None
    assert handle_from_instagram_url(url) == UNKNOWN_HANDLE


def test_post_urls_from_different_creators_do_not_share_a_cache_key():
    first = resolve_handle(youtube_url="https://youtube.com/@acme", instagram_url="https://instagram.com/p/AAA/")
    second = resolve_handle(youtube_url="https://youtube.com/@other", instagram_url="https://instagram.com/p/BBB/")
    assert first == second == UNKNOWN_HANDLE


def test_account_literally_named_unknown_resolves():
    assert instagram_username("https://instagram.com/unknown") == "unknown"
