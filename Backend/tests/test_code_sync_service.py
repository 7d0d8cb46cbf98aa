from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.models.lifestream_events import EventSource
from services.code_sync_service import CODE_DESCRIBERS, CodeSynchronizer, describe_code_event
from services.sync_errors import UnsupportedEventSubtype
from tests.fixtures import InMemoryEventStore, StaticSourceClient, make_github_event, make_raw_record


async def _sync(store, *events, logger=None):
    records = [make_raw_record(EventSource.CODE, event) for event in events]
    return await CodeSynchronizer(
        StaticSourceClient(records), store, logger=logger or MagicMock()
    ).sync()


@pytest.mark.parametrize(
    "event_type,payload",
    [
        ("CreateEvent", {"ref_type": "branch", "ref": "feature"}),
        ("CreateEvent", {"ref_type": "tag", "ref": "v1.0.0"}),
        ("CreateEvent", {"ref_type": "repository", "ref": None}),
        ("ForkEvent", {"forkee": {"full_name": "someone/lifestream"}}),
        ("PullRequestEvent", {"action": "opened", "number": 4}),
        ("PushEvent", {"size": 1, "commits": []}),
    ],
)
def test_supported_subtypes_describe_code(event_type, payload):
    event = make_github_event(event_type=event_type, payload=payload)

    assert describe_code_event(event_type, event) == ("wrote some code", "wrote some code")


def test_dispatch_table_covers_supported_subtypes():
    assert set(CODE_DESCRIBERS) == {"CreateEvent", "ForkEvent", "PullRequestEvent", "PushEvent"}


def test_create_event_with_other_ref_type_is_unsupported():
    event = make_github_event(event_type="CreateEvent", payload={"ref_type": "wiki"})

    with pytest.raises(UnsupportedEventSubtype) as excinfo:
        describe_code_event("CreateEvent", event)

    assert str(excinfo.value) == "Skipping create event: wiki"


def test_unknown_subtype_is_unsupported():
    with pytest.raises(UnsupportedEventSubtype) as excinfo:
        describe_code_event("WatchEvent", make_github_event(event_type="WatchEvent"))

    assert str(excinfo.value) == "Skipping an event type: WatchEvent"


@pytest.mark.asyncio
async def test_sync_inserts_supported_and_skips_unsupported():
    store = InMemoryEventStore()
    logger = MagicMock()

    report = await _sync(
        store,
        make_github_event(event_id="1", event_type="PushEvent"),
        make_github_event(event_id="2", event_type="WatchEvent"),
        make_github_event(event_id="3", event_type="CreateEvent", payload={"ref_type": "wiki"}),
        make_github_event(event_id="4", event_type="ForkEvent"),
        logger=logger,
    )

    assert report.inserted == 2
    assert report.skipped == 2
    assert report.failed == 0
    assert [event.foreign_id for event in store.inserts] == ["1", "4"]
    assert all(event.metadata == {} for event in store.inserts)
    assert all(event.description == "wrote some code" for event in store.inserts)
    assert all(event.event_type == "code" for event in store.inserts)
    logger.warning.assert_not_called()


@pytest.mark.asyncio
async def test_create_event_without_payload_fails_record():
    store = InMemoryEventStore()
    broken = make_github_event(event_id="5", event_type="CreateEvent")
    del broken["payload"]

    report = await _sync(store, broken, make_github_event(event_id="6"))

    assert report.failed == 1
    assert report.inserted == 1


@pytest.mark.asyncio
async def test_existing_code_event_is_skipped():
    store = InMemoryEventStore()
    event = make_github_event(event_id="7")

    await _sync(store, event)
    report = await _sync(store, event)

    assert (report.inserted, report.updated, report.skipped) == (0, 0, 1)
