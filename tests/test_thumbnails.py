"""
Tests for thumbnail fetching, encoding and caching.
"""
import base64

import pytest

from videoinfo.cache import BoundedCache
from videoinfo.thumbnails import ThumbnailResolver, default_thumbnail_url, guess_image_type
from tests.fakes import PNG_BYTES, FakeClock, FakeHTTPSession, FakeResponse

URL = "https://i.ytimg.com/vi/abc/hqdefault.jpg"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return BoundedCache(max_entries=10, default_ttl=43200, clock=clock)


def make_resolver(cache, session):
    return ThumbnailResolver(cache, session=session, ttl_seconds=43200)


def test_resolves_to_data_uri(cache):
    """Test that an image resolves to a base64 data URI"""
    resolver = make_resolver(cache, FakeHTTPSession())

    payload = resolver.resolve(URL)

    expected = base64.b64encode(PNG_BYTES).decode("ascii")
    assert payload == f"data:image/png;base64,{expected}"


def test_second_resolve_is_served_from_cache(cache):
    """Test that a repeat resolve makes no request"""
    session = FakeHTTPSession()
    resolver = make_resolver(cache, session)

    first = resolver.resolve(URL)
    second = resolver.resolve(URL)

    assert first == second
    assert session.calls == [URL]


def test_expired_entry_is_refetched(cache, clock):
    """Test that an expired entry is fetched again"""
    session = FakeHTTPSession()
    resolver = make_resolver(cache, session)

    resolver.resolve(URL)
    clock.advance(43200)
    resolver.resolve(URL)

    assert session.calls == [URL, URL]


def test_missing_content_type_uses_fallback(cache):
    """Test the fallback media type without a content-type header"""
    session = FakeHTTPSession(default=FakeResponse(headers={}))
    resolver = make_resolver(cache, session)

    payload = resolver.resolve(URL, fallback_type="image/webp")

    assert payload.startswith("data:image/webp;base64,")


def test_content_type_parameters_are_dropped(cache):
    """Test that content-type parameters are stripped"""
    session = FakeHTTPSession(default=FakeResponse(headers={"content-type": "image/jpeg; charset=binary"}))
    resolver = make_resolver(cache, session)

    assert resolver.resolve(URL).startswith("data:image/jpeg;base64,")


def test_http_error_returns_empty_and_is_not_cached(cache):
    """Test that an HTTP error yields "" and caches nothing"""
    session = FakeHTTPSession(default=FakeResponse(status_code=404))
    resolver = make_resolver(cache, session)

    assert resolver.resolve(URL) == ""
    assert resolver.resolve(URL) == ""
    assert len(session.calls) == 2
    assert len(cache) == 0


def test_network_failure_returns_empty(cache):
    """Test that a network failure yields """""
    session = FakeHTTPSession(default=ConnectionError("read ECONNRESET"))
    resolver = make_resolver(cache, session)

    assert resolver.resolve(URL) == ""


def test_empty_body_returns_empty(cache):
    """Test that an empty body yields """""
    session = FakeHTTPSession(default=FakeResponse(content=b""))
    resolver = make_resolver(cache, session)

    assert resolver.resolve(URL) == ""


def test_empty_url_makes_no_request(cache):
    """Test that an empty URL yields "" without a request"""
    session = FakeHTTPSession()
    resolver = make_resolver(cache, session)

    assert resolver.resolve("") == ""
    assert resolver.resolve(None) == ""
    assert session.calls == []


def test_default_thumbnail_url_and_type():
    """Test the static thumbnail URL and media type guess"""
    url = default_thumbnail_url("abc123def45")
    assert url == "https://i.ytimg.com/vi_webp/abc123def45/default.webp"
    assert guess_image_type(url) == "image/webp"
    assert guess_image_type(URL) == "image/jpeg"
