from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from app.core.logging import get_logger
from app.models.lifestream_events import EventSource
from app.models.lifestream_sources import LifestreamSource, get_enabled_sources
from services.blog_feed_client import BlogFeedClient
from services.blog_sync_service import BlogSynchronizer
from services.code_sync_service import CodeSynchronizer
from services.event_store import EventStore, PostgresEventStore
from services.github_activity_client import GithubActivityClient
from services.http_source_client import HttpSourceClient
from services.sync_service import SourceSynchronizer, SyncReport
from services.twitter_sync_service import TwitterSynchronizer
from services.twitter_timeline_client import DEFAULT_TWEET_COUNT, TwitterTimelineClient

logger = get_logger()

ClientFactory = Callable[[LifestreamSource], Any]

SYNCHRONIZERS: Dict[EventSource, Type[SourceSynchronizer]] = {
    EventSource.BLOG: BlogSynchronizer,
    EventSource.TWITTER: TwitterSynchronizer,
    EventSource.CODE: CodeSynchronizer,
}


def build_client(source: LifestreamSource) -> HttpSourceClient:
    """Default client factory; raises RuntimeError when credentials are missing."""
    if source.key is EventSource.BLOG:
        return BlogFeedClient()
    if source.key is EventSource.TWITTER:
        return TwitterTimelineClient(count=source.option_int("count", DEFAULT_TWEET_COUNT))
    if source.key is EventSource.CODE:
        return GithubActivityClient()
    raise ValueError(f"no client for source {source.key}")


async def sync_source(
    source: LifestreamSource,
    store: EventStore,
    *,
    client_factory: ClientFactory = build_client,
    author: Optional[str] = None,
) -> SyncReport:
    try:
        client = client_factory(source)
    except RuntimeError as exc:
        logger.error("lifestream_source_misconfigured", source=source.key.value, error=str(exc))
        return SyncReport(source=source.key.value, aborted=True)

    try:
        async with client:
            synchronizer = SYNCHRONIZERS[source.key](client, store, author=author)
            return await synchronizer.sync()
    except Exception as exc:
        logger.error(
            "lifestream_source_sync_crashed",
            source=source.key.value,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return SyncReport(source=source.key.value, aborted=True)


async def sync_all_sources(
    sources: Optional[Sequence[LifestreamSource]] = None,
    store: Optional[EventStore] = None,
    *,
    client_factory: ClientFactory = build_client,
    author: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run every source as its own sequential pass and fold the per-source
    reports into one summary. An aborted source never stops the next one.
    """
    if sources is None:
        sources = get_enabled_sources()
    if store is None:
        store = PostgresEventStore()

    reports: List[SyncReport] = []
    for source in sources:
        reports.append(
            await sync_source(source, store, client_factory=client_factory, author=author)
        )

    summary: Dict[str, Any] = {
        "total_sources": len(reports),
        "total_inserted": sum(r.inserted for r in reports),
        "total_updated": sum(r.updated for r in reports),
        "total_skipped": sum(r.skipped for r in reports),
        "total_failed": sum(r.failed for r in reports),
        "aborted_sources": [r.source for r in reports if r.aborted],
        "reports": [r.as_dict() for r in reports],
    }

    if not reports:
        logger.info("lifestream_sync_no_sources_enabled")

    logger.info(
        "lifestream_sync_summary",
        total_sources=summary["total_sources"],
        total_inserted=summary["total_inserted"],
        total_updated=summary["total_updated"],
        total_skipped=summary["total_skipped"],
        total_failed=summary["total_failed"],
        aborted_sources=summary["aborted_sources"],
    )
    return summary
