from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional, Sequence

from app.core.logging import configure_logging, get_logger
from app.core.request_id import with_run_id
from app.models.lifestream_events import EventSource
from app.models.lifestream_sources import LifestreamSource, get_enabled_sources
from services.db_service import close_db_pool
from services.event_store import PostgresEventStore
from services.lifestream_sync_service import sync_all_sources

configure_logging(service_name="worker")
logger = get_logger().bind(worker="lifestream_sync_bot")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="LifestreamSyncBot: pull upstream activity into the lifestream."
    )
    parser.add_argument(
        "--source",
        action="append",
        choices=[source.value for source in EventSource],
        help="Only sync this source (repeatable). Defaults to every enabled source.",
    )
    return parser.parse_args(argv)


def select_sources(
    enabled: Sequence[LifestreamSource],
    requested: Optional[Sequence[str]],
) -> List[LifestreamSource]:
    if not requested:
        return list(enabled)
    wanted = {EventSource(value) for value in requested}
    selected = [source for source in enabled if source.key in wanted]
    missing = wanted - {source.key for source in selected}
    if missing:
        logger.warning(
            "lifestream_sync_bot_sources_disabled",
            sources=sorted(source.value for source in missing),
        )
    return selected


async def run_sync(requested: Optional[Sequence[str]]) -> int:
    sources = select_sources(get_enabled_sources(), requested)
    store = PostgresEventStore()
    try:
        await store.ensure_schema()
        summary = await sync_all_sources(sources, store)
    except Exception as exc:
        logger.error("lifestream_sync_bot_failed", error=str(exc))
        return 1
    finally:
        await close_db_pool()

    logger.info(
        "lifestream_sync_bot_finished",
        total_sources=summary["total_sources"],
        total_inserted=summary["total_inserted"],
        total_updated=summary["total_updated"],
        aborted_sources=summary["aborted_sources"],
    )
    return 1 if summary["aborted_sources"] else 0


async def main_async(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    with with_run_id():
        return await run_sync(args.source)


def main() -> None:
    exit_code = asyncio.run(main_async())
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
