"""Tests for the admin blueprint record, stream, export and status APIs."""

import json

import pytest

from core.errors import ExportFailed
from device.interfaces import LOCATIONS_COLLECTION, MEDIA_COLLECTION, SERVER_TIMESTAMP
from web.services import records_service
from web.web_interface import create_web_interface


@pytest.fixture
def app(app_context):
    app = create_web_interface(app_context)["server"]
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_locations_list_hides_secrets(client, app_context):
    app_context.pipeline.submit_location()
    app_context.sessions.login("alice", "pw1")
    app_context.pipeline.submit_location()

    response = client.get("/api/locations")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "success"
    assert data["count"] == 2
    assert [r["username"] for r in data["records"]] == ["alice", "Anonymous"]
    assert "pw1" not in response.get_data(as_text=True)
    assert data["records"][0]["captured_at"].startswith("2024-03-01T12:00:0")


def test_media_list(client, record_store):
    record_store.append(MEDIA_COLLECTION, {"url": "https://cdn/v.mp4", "mediaType": "video", "timestamp": SERVER_TIMESTAMP})

    records = client.get("/api/media").get_json()["records"]

    assert records == [
        {
            "id": records[0]["id"],
            "username": "Anonymous",
            "media_type": "video",
            "url": "https://cdn/v.mp4",
            "captured_at": "2024-03-01T12:00:00+00:00",
        }
    ]


def test_unknown_collection_is_404(client):
    assert client.get("/api/login_information").status_code == 404


def test_export_sends_spreadsheet(client, app_context):
    app_context.pipeline.submit_location()

    response = client.post("/api/locations/export")

    assert response.status_code == 200
    assert "spreadsheetml" in response.mimetype
    assert "locations_" in response.headers["Content-Disposition"]
    assert response.data[:2] == b"PK"
    response.close()


def test_export_failure_returns_message(client, app_context, monkeypatch):
    def fail(collection):
        raise ExportFailed("disk full")

    monkeypatch.setattr(app_context.export_job, "export_all", fail)

    response = client.post("/api/media/export")

    assert response.status_code == 500
    assert response.get_json() == {"status": "error", "error": "Export failed: disk full"}


def test_status_reports_session_and_device(client, app_context):
    app_context.sessions.login("alice", "pw1")

    data = client.get("/api/status").get_json()

    identity = app_context.identity.ensure_identity()
    assert data["device"]["id"] == str(identity.id)
    assert data["logged_in"] is True
    assert data["username"] == "alice"
    assert data["is_primary"] is True
    assert data["location_sending"] is False
    assert "pw1" not in json.dumps(data)


def test_stream_route_is_event_stream(client, app_context):
    response = client.get("/api/locations/stream")
    try:
        assert response.status_code == 200
        assert response.mimetype == "text/event-stream"
    finally:
        response.close()


class TestStreamEvents:
    def test_emits_current_list_then_updates(self, app_context, record_store):
        events = records_service.stream_events(app_context, "locations", heartbeat=0.05)

        first = next(events)
        assert first.startswith("data: ")
        assert json.loads(first[len("data: "):]) == []

        record_store.append(LOCATIONS_COLLECTION, {"latitude": 1.0, "timestamp": SERVER_TIMESTAMP})
        update = json.loads(next(events)[len("data: "):])
        assert [r["latitude"] for r in update] == [1.0]

        assert next(events) == ": keep-alive\n\n"
        events.close()

    def test_closing_generator_detaches_listener(self, app_context, record_store):
        events = records_service.stream_events(app_context, "media", heartbeat=0.05)
        next(events)
        assert record_store.listener_count(MEDIA_COLLECTION) == 1

        events.close()

        assert record_store.listener_count(MEDIA_COLLECTION) == 0
        assert app_context.view(MEDIA_COLLECTION).active_streams == 0

    def test_unknown_kind_rejected(self, app_context):
        with pytest.raises(ValueError):
            records_service.resolve_collection("users")
