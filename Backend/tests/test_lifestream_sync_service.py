from __future__ import annotations

import pytest

from app import config
from app.models.lifestream_events import EventSource
from app.models.lifestream_sources import LifestreamSource
from services import lifestream_sync_service
from services.blog_feed_client import BlogFeedClient
from services.github_activity_client import GithubActivityClient
from services.lifestream_sync_service import build_client, sync_all_sources, sync_source
from services.sync_errors import FetchFailure
from services.twitter_timeline_client import TwitterTimelineClient
from tests.fixtures import (
    InMemoryEventStore,
    StaticSourceClient,
    make_blog_entry,
    make_github_event,
    make_raw_record,
    make_tweet,
)


def _factory(clients):
    def _build(source: LifestreamSource):
        return clients[source.key]

    return _build


@pytest.mark.asyncio
async def test_sync_all_sources_runs_each_source_and_sums():
    clients = {
        EventSource.BLOG: StaticSourceClient(
            [make_raw_record(EventSource.BLOG, make_blog_entry())]
        ),
        EventSource.TWITTER: StaticSourceClient(
            [
                make_raw_record(EventSource.TWITTER, make_tweet(tweet_id="1")),
                make_raw_record(
                    EventSource.TWITTER,
                    make_tweet(tweet_id="2", text="@someone ok", in_reply_to_user_id=5),
                ),
            ]
        ),
        EventSource.CODE: StaticSourceClient(error=FetchFailure("rate limited", 403)),
    }
    store = InMemoryEventStore()
    sources = [LifestreamSource(key=key) for key in EventSource]

    summary = await sync_all_sources(sources, store, client_factory=_factory(clients))

    assert summary["total_sources"] == 3
    assert summary["total_inserted"] == 2
    assert summary["total_skipped"] == 1
    assert summary["aborted_sources"] == ["code"]
    assert [report["source"] for report in summary["reports"]] == ["blog", "twitter", "code"]
    assert all(client.closed for client in clients.values())


@pytest.mark.asyncio
async def test_sync_all_sources_uses_enabled_registry(monkeypatch):
    monkeypatch.setattr(
        lifestream_sync_service,
        "get_enabled_sources",
        lambda: [LifestreamSource(key=EventSource.CODE)],
    )
    clients = {
        EventSource.CODE: StaticSourceClient(
            [make_raw_record(EventSource.CODE, make_github_event(event_id="11"))]
        )
    }

    summary = await sync_all_sources(
        store=InMemoryEventStore(), client_factory=_factory(clients)
    )

    assert summary["total_sources"] == 1
    assert summary["total_inserted"] == 1


@pytest.mark.asyncio
async def test_missing_credentials_abort_only_that_source():
    def _factory_missing(source):
        raise RuntimeError("TWITTER_BEARER_TOKEN is not set.")

    report = await sync_source(
        LifestreamSource(key=EventSource.TWITTER),
        InMemoryEventStore(),
        client_factory=_factory_missing,
    )

    assert report.aborted is True
    assert report.source == "twitter"


@pytest.mark.asyncio
async def test_unexpected_client_error_aborts_only_that_source():
    clients = {
        EventSource.TWITTER: StaticSourceClient(error=RuntimeError("boom")),
        EventSource.CODE: StaticSourceClient(
            [make_raw_record(EventSource.CODE, make_github_event(event_id="21"))]
        ),
    }
    sources = [LifestreamSource(key=EventSource.TWITTER), LifestreamSource(key=EventSource.CODE)]

    summary = await sync_all_sources(
        sources, InMemoryEventStore(), client_factory=_factory(clients)
    )

    assert summary["aborted_sources"] == ["twitter"]
    assert summary["total_inserted"] == 1
    assert clients[EventSource.TWITTER].closed is True


def test_build_client_per_source(monkeypatch):
    monkeypatch.setattr(config.settings, "BLOG_BASE_URL", "https://blog.example")
    monkeypatch.setattr(config.settings, "TWITTER_SCREEN_NAME", "jacobemerick")
    monkeypatch.setattr(config.settings, "TWITTER_BEARER_TOKEN", "token")
    monkeypatch.setattr(config.settings, "GITHUB_USERNAME", "jacobemerick")

    assert isinstance(build_client(LifestreamSource(key=EventSource.BLOG)), BlogFeedClient)
    twitter = build_client(LifestreamSource(key=EventSource.TWITTER, options={"count": 30}))
    assert isinstance(twitter, TwitterTimelineClient)
    assert twitter.count == 30
    assert isinstance(build_client(LifestreamSource(key=EventSource.CODE)), GithubActivityClient)


def test_build_client_missing_setting_raises(monkeypatch):
    monkeypatch.setattr(config.settings, "GITHUB_USERNAME", None)

    with pytest.raises(RuntimeError):
        build_client(LifestreamSource(key=EventSource.CODE))
