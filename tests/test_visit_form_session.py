"""
Opening a visit form and driving it through a session.
"""

import pytest

from visitflow.application.use_cases.start_visit import WorkflowConfig
from visitflow.application.use_cases.visit_form_session import (
    OpenVisitFormRequest,
    OpenVisitFormUseCase,
    UnknownEnrollmentError,
)
from visitflow.domain.entities.visit_type import VisitType
from visitflow.domain.enums.workflow import SubmissionState, VisitTypeView

from .conftest import (
    LOCATION_UUID,
    PATIENT_UUID,
    TODAY,
    FakeAttributeCatalog,
    FakeCatalogService,
    FakeVisitService,
    RecordingChannel,
    make_enrollment,
    network_error,
)


class Effects:
    def __init__(self):
        self.refreshed = 0
        self.closed = 0

    def refresh(self):
        self.refreshed += 1

    def close(self):
        self.closed += 1


async def open_session(visit_service, catalog=None, config=None, now=None, page_size=5):
    effects, channel = Effects(), RecordingChannel()
    use_case = OpenVisitFormUseCase(
        catalog=catalog or FakeCatalogService(),
        visit_service=visit_service,
        attribute_types=FakeAttributeCatalog(),
        config=config or WorkflowConfig(),
        session_location_uuid=LOCATION_UUID,
        page_size=page_size,
        today=lambda: TODAY,
    )
    session = await use_case.execute(
        OpenVisitFormRequest(patient_uuid=PATIENT_UUID, now=now, session_id="session-1"),
        notification_channel=channel,
        refresh_visit_data=effects.refresh,
        close_surface=effects.close,
    )
    return session, channel, effects


@pytest.mark.asyncio
async def test_open_applies_defaults(visit_service, now):
    session, _, _ = await open_session(visit_service, now=now)
    state = session.form.state
    assert state.visit_time == "02:30"
    assert state.selected_location == LOCATION_UUID
    assert state.visit_type is None
    assert not session.form.dirty
    assert session.state == SubmissionState.IDLE


@pytest.mark.asyncio
async def test_submit_success_refreshes_and_closes_once(visit_service, now):
    session, channel, effects = await open_session(visit_service, now=now)
    session.edit({"visit_type": "vt-facility"})
    result = await session.submit()

    assert result.outcome.state == SubmissionState.SUCCEEDED
    assert [n.title for n in channel.notifications] == ["Visit started"]
    assert effects.refreshed == 1
    assert effects.closed == 1
    session.discard()
    assert effects.closed == 1


@pytest.mark.asyncio
async def test_submit_failure_keeps_session_open(now):
    visit_service = FakeVisitService(error=network_error())
    session, channel, effects = await open_session(visit_service, now=now)
    session.edit({"visit_type": "vt-facility"})
    result = await session.submit()

    assert result.outcome.state == SubmissionState.FAILED
    assert channel.notifications[0].title == "Error starting visit"
    assert "network unreachable" in channel.notifications[0].description
    assert effects.refreshed == 0
    assert effects.closed == 0
    assert not session.closed


@pytest.mark.asyncio
async def test_discard_cancels_and_closes(visit_service, now):
    session, _, effects = await open_session(visit_service, now=now)
    session.discard()
    assert session.state == SubmissionState.CANCELLED
    assert effects.closed == 1
    assert visit_service.calls == []


@pytest.mark.asyncio
async def test_edit_resolves_enrollment_by_program(visit_service, now):
    enrollment = make_enrollment()
    catalog = FakeCatalogService(enrollments=[enrollment])
    session, _, _ = await open_session(visit_service, catalog=catalog, now=now)

    session.edit({"enrollment": "program-hiv"})
    assert session.form.get("enrollment") == enrollment
    with pytest.raises(UnknownEnrollmentError):
        session.edit({"enrollment": "program-tb"})


@pytest.mark.asyncio
async def test_browse_all_visit_types_with_query_and_paging(visit_service, now):
    visit_types = [VisitType(str(i), f"Visit {i}") for i in range(7)]
    catalog = FakeCatalogService(visit_types=visit_types)
    session, _, _ = await open_session(visit_service, catalog=catalog, now=now, page_size=5)

    page = await session.browse_visit_types("", 2)
    assert [v.uuid for v in page.results] == ["5", "6"]
    filtered = await session.browse_visit_types("visit 3")
    assert [v.uuid for v in filtered.results] == ["3"]


@pytest.mark.asyncio
async def test_browse_recommended_visit_types(visit_service, now):
    enrollment = make_enrollment()
    recommended = [VisitType("vt-hiv", "HIV Return Visit"), VisitType("vt-hiv-init", "HIV Initial Visit")]
    catalog = FakeCatalogService(enrollments=[enrollment], recommended=recommended)
    session, _, _ = await open_session(
        visit_service,
        catalog=catalog,
        config=WorkflowConfig(show_recommended_visit_type_tab=True),
        now=now,
    )
    assert session.form.get("content_switcher_index") == VisitTypeView.RECOMMENDED

    page = await session.browse_visit_types("return")
    assert [v.uuid for v in page.results] == ["vt-hiv"]
    assert catalog.recommendation_requests[-1] == (
        PATIENT_UUID, "enrollment-1", "program-hiv", LOCATION_UUID
    )

    session.edit({"content_switcher_index": VisitTypeView.ALL})
    page = await session.browse_visit_types("")
    assert page.total_items == 2
    assert {v.uuid for v in page.results} == {"vt-opd", "vt-facility"}
