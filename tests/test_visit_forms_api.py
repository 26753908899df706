"""
Visit form HTTP endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from visitflow.adapters.cache.patient_visit_cache import PatientVisitCache
from visitflow.adapters.sessions.session_store import VisitFormSessionStore
from visitflow.api import deps
from visitflow.app import create_app
from visitflow.core.config import OpenMRSSettings, Settings, VisitFormSettings, get_settings
from visitflow.domain.entities.visit_type import VisitAttributeType

from .conftest import (
    LOCATION_UUID,
    PATIENT_UUID,
    FakeAttributeCatalog,
    FakeCatalogService,
    FakeQueueService,
    FakeVisitService,
    network_error,
)

OPENED_AT = "2026-01-05T14:30:00"


class Backend:
    def __init__(self, show_service_queue_fields=False):
        self.settings = Settings(
            openmrs=OpenMRSSettings(session_location_uuid=LOCATION_UUID),
            visit_form=VisitFormSettings(show_service_queue_fields=show_service_queue_fields),
        )
        self.visit_service = FakeVisitService()
        self.queue_service = FakeQueueService()
        self.catalog = FakeCatalogService()
        self.attribute_types = FakeAttributeCatalog()
        self.store = VisitFormSessionStore()
        self.cache = PatientVisitCache(self.visit_service)

    def client(self) -> TestClient:
        app = create_app()
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[deps.get_visit_service] = lambda: self.visit_service
        app.dependency_overrides[deps.get_queue_service] = lambda: self.queue_service
        app.dependency_overrides[deps.get_catalog_service] = lambda: self.catalog
        app.dependency_overrides[deps.get_attribute_type_catalog] = lambda: self.attribute_types
        app.dependency_overrides[deps.get_session_store] = lambda: self.store
        app.dependency_overrides[deps.get_visit_cache] = lambda: self.cache
        return TestClient(app)


@pytest.fixture
def backend():
    return Backend()


@pytest.fixture
def client(backend):
    return backend.client()


def open_form(client) -> dict:
    response = client.post(f"/patients/{PATIENT_UUID}/visit-forms", json={"now": OPENED_AT})
    assert response.status_code == 201
    return response.json()["data"]


def test_open_form_has_defaults(client):
    form = open_form(client)
    assert form["patient_uuid"] == PATIENT_UUID
    assert form["state"] == "idle"
    assert form["visit_date"] == "2026-01-05"
    assert form["visit_time"] == "02:30"
    assert form["time_format"] == "PM"
    assert form["selected_location"] == LOCATION_UUID
    assert form["visit_type"] is None
    assert not form["can_submit"]
    assert "visit_type" in form["errors"]


def test_edit_reports_field_errors(client):
    session_id = open_form(client)["session_id"]
    response = client.patch(f"/visit-forms/{session_id}", json={"visit_type": "vt-facility", "visit_time": "25:00"})
    assert response.status_code == 200
    form = response.json()["data"]
    assert set(form["errors"]) == {"visit_time"}
    assert form["dirty"]
    assert not form["can_submit"]

    form = client.patch(f"/visit-forms/{session_id}", json={"visit_time": "09:15", "time_format": "AM"}).json()["data"]
    assert form["errors"] == {}
    assert form["can_submit"]


def test_submit_success_closes_form_and_refreshes_visits(backend, client):
    session_id = open_form(client)["session_id"]
    client.patch(f"/visit-forms/{session_id}", json={"visit_type": "vt-facility"})

    response = client.post(f"/visit-forms/{session_id}/submit")
    assert response.status_code == 200
    result = response.json()["data"]
    assert result["state"] == "succeeded"
    assert result["closed"]
    assert result["refresh_visit_data"]
    assert result["notifications"][0]["title"] == "Visit started"
    assert result["notifications"][0]["description"] == "Facility Visit started successfully"
    assert len(backend.visit_service.calls) == 1

    assert client.get(f"/visit-forms/{session_id}").status_code == 404
    visits = client.get(f"/patients/{PATIENT_UUID}/visits").json()["data"]
    assert visits["version"] == 1


def test_submit_invalid_form_is_rejected(backend, client):
    session_id = open_form(client)["session_id"]
    response = client.post(f"/visit-forms/{session_id}/submit")
    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "FORM_NOT_SUBMITTABLE"
    assert "visit_type" in body["details"]["errors"]
    assert backend.visit_service.calls == []


def test_submit_failure_keeps_form_open(backend, client):
    backend.visit_service.error = network_error()
    session_id = open_form(client)["session_id"]
    client.patch(f"/visit-forms/{session_id}", json={"visit_type": "vt-facility"})

    result = client.post(f"/visit-forms/{session_id}/submit").json()["data"]
    assert result["state"] == "failed"
    assert not result["closed"]
    assert result["notifications"][0]["title"] == "Error starting visit"
    assert "network unreachable" in result["notifications"][0]["description"]

    form = client.get(f"/visit-forms/{session_id}").json()["data"]
    assert form["state"] == "failed"
    assert form["can_submit"]


def test_missing_required_attribute(backend, client):
    backend.attribute_types.types = [VisitAttributeType("punctuality", required=True)]
    session_id = open_form(client)["session_id"]
    client.patch(f"/visit-forms/{session_id}", json={"visit_type": "vt-facility"})

    result = client.post(f"/visit-forms/{session_id}/submit").json()["data"]
    assert result["state"] == "attribute_check_failed"
    assert result["missing_attributes"] == ["punctuality"]
    assert result["notifications"][0]["inline"]
    assert backend.visit_service.calls == []

    client.patch(f"/visit-forms/{session_id}", json={"attribute_values": {"punctuality": "on-time"}})
    assert client.post(f"/visit-forms/{session_id}/submit").json()["data"]["state"] == "succeeded"
    assert backend.visit_service.calls[0].attributes[0].value == "on-time"


def test_attribute_types_loading_defers_submit(backend, client):
    backend.attribute_types.loading = True
    session_id = open_form(client)["session_id"]
    client.patch(f"/visit-forms/{session_id}", json={"visit_type": "vt-facility"})

    response = client.post(f"/visit-forms/{session_id}/submit")
    assert response.status_code == 503
    assert response.json()["error"] == "ATTRIBUTE_TYPES_UNAVAILABLE"
    assert backend.visit_service.calls == []


def test_queue_failure_is_reported_as_warning():
    backend = Backend(show_service_queue_fields=True)
    backend.queue_service.error = network_error("queue unavailable")
    client = backend.client()
    session_id = open_form(client)["session_id"]
    client.patch(
        f"/visit-forms/{session_id}",
        json={
            "visit_type": "vt-facility",
            "queue_fields": {"queue_location": "ql", "service": "triage", "priority": "p", "status": "s"},
        },
    )

    result = client.post(f"/visit-forms/{session_id}/submit").json()["data"]
    assert result["state"] == "succeeded_with_queue_warning"
    assert result["visit"]["uuid"] == "visit-1"
    assert [n["kind"] for n in result["notifications"]] == ["success", "error"]
    assert result["notifications"][1]["title"] == "Error adding patient to the queue"
    assert result["closed"]
    assert result["refresh_visit_data"]
    assert backend.cache.version(PATIENT_UUID) == 1
    assert len(backend.queue_service.calls) == 1


def test_visit_type_search_and_paging(client):
    session_id = open_form(client)["session_id"]
    page = client.get(f"/visit-forms/{session_id}/visit-types", params={"query": "facility"}).json()["data"]
    assert [v["uuid"] for v in page["results"]] == ["vt-facility"]
    assert page["current_page"] == 1
    assert not page["has_next"]


def test_discard_closes_form(backend, client):
    session_id = open_form(client)["session_id"]
    response = client.delete(f"/visit-forms/{session_id}")
    assert response.status_code == 200
    assert response.json()["data"]["state"] == "cancelled"
    assert client.delete(f"/visit-forms/{session_id}").status_code == 404
    assert len(backend.store) == 0


def test_unknown_form_is_not_found(client):
    response = client.get("/visit-forms/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_unknown_enrollment_is_rejected(client):
    session_id = open_form(client)["session_id"]
    response = client.patch(f"/visit-forms/{session_id}", json={"enrollment": "nope"})
    assert response.status_code == 422
    assert response.json()["error"] == "UNKNOWN_ENROLLMENT"
