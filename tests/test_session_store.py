"""
Open visit form registry and idle expiry.
"""

import asyncio
from functools import partial

import pytest

from visitflow.adapters.notifications.collecting_channel import CollectingNotificationChannel
from visitflow.adapters.queue.form_queue_fields import FormQueueFieldsProvider
from visitflow.adapters.sessions.session_store import SessionEntry, VisitFormSessionStore
from visitflow.application.use_cases.start_visit import WorkflowConfig
from visitflow.application.use_cases.visit_form_session import OpenVisitFormRequest, OpenVisitFormUseCase
from visitflow.domain.enums.workflow import SubmissionState

from .conftest import (
    LOCATION_UUID,
    PATIENT_UUID,
    TODAY,
    FakeAttributeCatalog,
    FakeCatalogService,
    FakeVisitService,
    network_error,
)


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


async def open_entry(store, visit_service, session_id, now=None):
    use_case = OpenVisitFormUseCase(
        catalog=FakeCatalogService(),
        visit_service=visit_service,
        attribute_types=FakeAttributeCatalog(),
        config=WorkflowConfig(),
        session_location_uuid=LOCATION_UUID,
        today=lambda: TODAY,
    )
    channel = CollectingNotificationChannel()
    queue_fields = FormQueueFieldsProvider()
    session = await use_case.execute(
        OpenVisitFormRequest(patient_uuid=PATIENT_UUID, now=now, session_id=session_id),
        notification_channel=channel,
        refresh_visit_data=lambda: None,
        close_surface=partial(store.remove, session_id),
        queue_fields=queue_fields,
    )
    entry = SessionEntry(session=session, channel=channel, queue_fields=queue_fields)
    store.add(entry)
    return entry


@pytest.mark.asyncio
async def test_idle_session_is_discarded(visit_service):
    clock = Clock()
    store = VisitFormSessionStore(idle_timeout_seconds=60, clock=clock)
    entry = await open_entry(store, visit_service, "stale")

    clock.now += 61
    assert store.get("stale") is None
    assert len(store) == 0
    assert entry.session.closed
    assert entry.session.state == SubmissionState.CANCELLED


@pytest.mark.asyncio
async def test_access_keeps_session_alive(visit_service):
    clock = Clock()
    store = VisitFormSessionStore(idle_timeout_seconds=60, clock=clock)
    await open_entry(store, visit_service, "busy")

    for _ in range(3):
        clock.now += 45
        assert store.get("busy") is not None
    assert len(store) == 1


@pytest.mark.asyncio
async def test_opening_a_form_evicts_stale_ones(visit_service):
    clock = Clock()
    store = VisitFormSessionStore(idle_timeout_seconds=60, clock=clock)
    await open_entry(store, visit_service, "old")

    clock.now += 120
    await open_entry(store, visit_service, "new")
    assert len(store) == 1
    assert store.get("new") is not None


@pytest.mark.asyncio
async def test_failed_session_expires_too(now):
    visit_service = FakeVisitService(error=network_error())
    clock = Clock()
    store = VisitFormSessionStore(idle_timeout_seconds=60, clock=clock)
    entry = await open_entry(store, visit_service, "failed", now=now)
    entry.session.edit({"visit_type": "vt-facility"})
    result = await entry.session.submit()
    assert result.outcome.state == SubmissionState.FAILED

    clock.now += 61
    assert store.evict_expired() == ["failed"]
    assert store.get("failed") is None


@pytest.mark.asyncio
async def test_session_with_call_in_flight_is_kept(now):
    visit_service = FakeVisitService()
    visit_service.gate = asyncio.Event()
    clock = Clock()
    store = VisitFormSessionStore(idle_timeout_seconds=60, clock=clock)
    entry = await open_entry(store, visit_service, "submitting", now=now)
    entry.session.edit({"visit_type": "vt-facility"})
    submission = asyncio.create_task(entry.session.submit())
    await visit_service.started.wait()

    clock.now += 600
    assert store.evict_expired() == []
    assert store.get("submitting") is entry

    visit_service.gate.set()
    result = await submission
    assert result.outcome.state == SubmissionState.SUCCEEDED
    assert len(store) == 0
