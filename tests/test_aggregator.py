"""
Tests for the aggregation orchestrator: retry gating, graceful degradation
and the end-to-end happy path against scripted upstream clients.
"""
import pytest

from videoinfo import aggregator as aggregator_module
from videoinfo.aggregator import VideoAggregator
from videoinfo.cache import BoundedCache
from videoinfo.errors import ErrorKind, InitializationError, PermanentContentError
from videoinfo.models import AggregationOutcome
from videoinfo.related import RelatedVideoWalker
from videoinfo.thumbnails import ThumbnailResolver
from videoinfo.upstream import ClientLifecycleManager
from tests.fakes import (
    EndlessPagesClient,
    FakeHTTPSession,
    FakeUpstreamClient,
    make_pages,
    make_video_info,
)

VIDEO_ID = "abc123def45"


class ClientFactory:
    """Hands out pre-built clients in order, counting constructions."""

    def __init__(self, *clients):
        self.clients = list(clients)
        self.built = []

    def __call__(self):
        if not self.clients:
            raise InitializationError("no more clients")
        client = self.clients.pop(0)
        self.built.append(client)
        return client


class RaisingResolver:
    def resolve(self, url, fallback_type="image/jpeg"):
        raise RuntimeError("thumbnail exploded")


class RaisingWalker:
    def walk(self, client, video_id, resume_token=None, max_depth=0):
        raise RuntimeError("walker exploded")


@pytest.fixture
def http():
    return FakeHTTPSession()


@pytest.fixture
def resolver(http):
    return ThumbnailResolver(BoundedCache(max_entries=100, default_ttl=60), session=http)


@pytest.fixture
def walker(resolver):
    return RelatedVideoWalker(resolver, page_delay=0, sleep=lambda _: None)


def build(factory, resolver, walker, max_depth=10):
    return VideoAggregator(
        clients=ClientLifecycleManager(factory, timeout=5),
        thumbnails=resolver,
        walker=walker,
        max_depth=max_depth,
    )


def test_happy_path_with_two_continuations(resolver, walker):
    """Test that a full request composes metadata, thumbnail and three related pages"""
    client = FakeUpstreamClient(
        info=make_video_info(VIDEO_ID, title="Great Video"),
        pages=make_pages(3, 4, 2, last_token="tok-final"),
    )
    aggregator = build(ClientFactory(client), resolver, walker)

    result = aggregator.aggregate(VIDEO_ID, resume_token=None, depth=2)

    assert result.outcome is AggregationOutcome.AVAILABLE
    assert result.title == "Great Video"
    assert result.thumbnail.startswith("data:image/png;base64,")
    assert result.related.count == 9
    assert result.related.next_continuation_token == "tok-final"
    assert client.page_calls == [None, "tok-1", "tok-2"]


def test_depth_defaults_to_zero(resolver, walker):
    """Test that only page 0 is fetched when no depth is given"""
    client = FakeUpstreamClient(pages=make_pages(2, 2))
    aggregator = build(ClientFactory(client), resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert client.page_calls == [None]
    assert result.related.next_continuation_token == "tok-1"


def test_depth_is_clamped(resolver, walker):
    """Test that depth above the configured maximum is clamped"""
    client = EndlessPagesClient()
    aggregator = build(ClientFactory(client), resolver, walker, max_depth=1)

    aggregator.aggregate(VIDEO_ID, depth=50)

    assert client.page_calls == [None, "tok-1"]


def test_retryable_failure_retries_once_with_refreshed_client(resolver, walker):
    """Test that a network failure is retried once on a new client"""
    stale = FakeUpstreamClient(info_error=Exception("read ECONNRESET"), name="stale")
    fresh = FakeUpstreamClient(info=make_video_info(VIDEO_ID), name="fresh")
    factory = ClientFactory(stale, fresh)
    aggregator = build(factory, resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert result.outcome is AggregationOutcome.AVAILABLE
    assert factory.built == [stale, fresh]
    assert stale.info_calls == [VIDEO_ID]
    assert fresh.info_calls == [VIDEO_ID]


def test_permanent_failure_is_not_retried(resolver, walker):
    """Test that a content refusal is returned without a retry"""
    client = FakeUpstreamClient(
        info_error=PermanentContentError("Private video"),
        pages=make_pages(2),
    )
    factory = ClientFactory(client)
    aggregator = build(factory, resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert factory.built == [client]
    assert client.info_calls == [VIDEO_ID]
    assert result.outcome is AggregationOutcome.UNAVAILABLE
    assert not result.available
    assert "Private video" in result.reason
    # Independently successful parts are kept
    assert result.thumbnail.startswith("data:image/png;base64,")
    assert result.related.count == 2


def test_plain_private_message_is_not_retried(resolver, walker):
    """Test that an untyped "Private" error is not retried"""
    client = FakeUpstreamClient(info_error=Exception("Private video"))
    factory = ClientFactory(client)
    aggregator = build(factory, resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert len(client.info_calls) == 1
    assert len(factory.built) == 1
    assert result.reason == "Private video"


def test_retry_happens_at_most_once(resolver, walker):
    """Test that a second network failure is not retried again"""
    first = FakeUpstreamClient(info_error=Exception("fetch failed"), pages=make_pages(1))
    second = FakeUpstreamClient(info_error=Exception("fetch failed"), pages=make_pages(2))
    third = FakeUpstreamClient()
    factory = ClientFactory(first, second, third)
    aggregator = build(factory, resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert factory.built == [first, second]
    assert len(first.info_calls) + len(second.info_calls) == 2
    assert result.outcome is AggregationOutcome.UNAVAILABLE
    assert result.reason == "fetch failed"
    # Partial data comes from the last attempt
    assert result.related.count == 2


def test_unknown_error_is_not_retried(resolver, walker):
    """Test that an unclassified error is not retried"""
    client = FakeUpstreamClient(info_error=KeyError("videoDetails"))
    factory = ClientFactory(client)
    aggregator = build(factory, resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert len(factory.built) == 1
    assert result.outcome is AggregationOutcome.UNAVAILABLE


def test_secondary_failures_degrade_to_empty(resolver):
    """Test that thumbnail and related failures do not fail the request"""
    client = FakeUpstreamClient(info=make_video_info(VIDEO_ID, title="Still Here"))
    aggregator = VideoAggregator(
        clients=ClientLifecycleManager(ClientFactory(client)),
        thumbnails=RaisingResolver(),
        walker=RaisingWalker(),
    )

    result = aggregator.aggregate(VIDEO_ID, depth=2)

    assert result.outcome is AggregationOutcome.AVAILABLE
    assert result.title == "Still Here"
    assert result.author.name == "Owner Channel"
    assert result.thumbnail == ""
    assert result.related.items == []
    assert result.related.error is ErrorKind.UNKNOWN


def test_failed_page_walk_still_available(resolver, walker):
    """Test that a failed continuation page keeps earlier related items"""
    client = FakeUpstreamClient(
        info=make_video_info(VIDEO_ID),
        page_errors={None: Exception("network error on next")},
    )
    aggregator = build(ClientFactory(client), resolver, walker)

    result = aggregator.aggregate(VIDEO_ID, depth=3)

    assert result.available
    assert result.related.items == []
    assert result.related.to_dict()["error"] == "network error on next"


def test_client_initialization_failure(resolver, walker):
    """Test that a client that cannot start yields CLIENT_UNAVAILABLE"""
    aggregator = build(ClientFactory(), resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert result.outcome is AggregationOutcome.CLIENT_UNAVAILABLE
    assert "no more clients" in result.reason
    assert result.to_dict() == {"id": VIDEO_ID, "error": result.reason}


def test_refresh_failure_during_retry_is_client_unavailable(resolver, walker):
    """Test that a failed refresh before the retry yields CLIENT_UNAVAILABLE"""
    stale = FakeUpstreamClient(info_error=Exception("read ECONNRESET"))
    aggregator = build(ClientFactory(stale), resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert result.outcome is AggregationOutcome.CLIENT_UNAVAILABLE


def test_composition_crash_is_internal_error(resolver, walker, monkeypatch):
    """Test that a crash while composing yields INTERNAL_ERROR"""
    def explode(info, thumbnail, related):
        raise AttributeError("bug in composition")

    monkeypatch.setattr(aggregator_module, "compose_available", explode)
    aggregator = build(ClientFactory(FakeUpstreamClient()), resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert result.outcome is AggregationOutcome.INTERNAL_ERROR
    assert not result.available


def test_unavailable_payload_shape(resolver, walker):
    """Test the JSON shape of an unavailable video"""
    client = FakeUpstreamClient(info_error=PermanentContentError("This video is unavailable"))
    aggregator = build(ClientFactory(client), resolver, walker)

    payload = aggregator.aggregate(VIDEO_ID).to_dict()

    assert payload["id"] == VIDEO_ID
    assert payload["unavailable"] is True
    assert payload["reason"] == "This video is unavailable"
    assert "thumbnail" in payload
    assert isinstance(payload["Related-videos"], dict)


def test_malformed_field_does_not_fail_request(resolver, walker):
    """A wrongly shaped upstream field degrades to empty, not an internal error"""
    info = make_video_info(VIDEO_ID)
    contents = info.watch_next["contents"]["twoColumnWatchNextResults"]["results"]["results"]["contents"]
    contents[1]["videoSecondaryInfoRenderer"]["description"]["runs"] = {"text": "odd shape"}
    aggregator = build(ClientFactory(FakeUpstreamClient(info=info)), resolver, walker)

    result = aggregator.aggregate(VIDEO_ID)

    assert result.outcome is AggregationOutcome.AVAILABLE
    assert result.description.first_runs == []
