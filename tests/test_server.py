"""
Tests for the webhook HTTP surface (sendgrid_webhook/server.py).

End-to-end through FastAPI with the ingestion API replaced by a recording
httpx transport.
"""

import json

import pytest
from fastapi.testclient import TestClient

from sendgrid_webhook.dispatcher import Dispatcher
from sendgrid_webhook.hashing import stable_id
from sendgrid_webhook.server import app, get_dispatcher


@pytest.fixture
def client_for():
    def _make(transport):
        app.dependency_overrides[get_dispatcher] = lambda: Dispatcher(
            base_url="https://ingest.example.test", transport=transport
        )
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(client_for, transport):
    return client_for(transport)


class TestRejections:
    """Transport-shape and content errors, rejected before forwarding."""

    def test_get_not_allowed(self, client, transport):
        resp = client.get("/?apikey=k")
        assert resp.status_code == 405
        assert transport.requests == []

    def test_put_not_allowed_on_webhook_path(self, client, transport):
        resp = client.put("/webhook?apikey=k", json={"event": "open"})
        assert resp.status_code == 405

    def test_missing_api_key(self, client, transport):
        resp = client.post("/", json=[{"event": "delivered", "email": "a@b.com"}])
        assert resp.status_code == 401
        assert transport.requests == []

    def test_empty_api_key(self, client, transport):
        resp = client.post("/?apikey=", json={"event": "open"})
        assert resp.status_code == 401
        assert transport.requests == []

    def test_non_json_body(self, client, transport):
        resp = client.post(
            "/?apikey=k",
            content=b"event=delivered&email=a",
            headers={"content-type": "application/x-www-form-urlencoded"},
        )
        assert resp.status_code == 400
        assert transport.requests == []

    def test_empty_body(self, client, transport):
        resp = client.post("/?apikey=k", content=b"")
        assert resp.status_code == 400

    @pytest.mark.parametrize("body", [
        b'{"event":"open","v":NaN}',
        b'{"event":"open","timestamp":NaN}',
        b'[{"event":"delivered","email":"a@b.com","score":Infinity}]',
        b'{"event":"open","timestamp":-Infinity}',
        b"NaN",
    ])
    def test_non_standard_json_constants(self, client, transport, body):
        resp = client.post("/?apikey=k", content=body)
        assert resp.status_code == 400
        assert transport.requests == []

    def test_no_recognizable_events(self, client, transport):
        resp = client.post("/?apikey=k", json={})
        assert resp.status_code == 406
        assert resp.json()["detail"] == "Unexpected content format"
        assert transport.requests == []

    def test_array_of_garbage(self, client, transport):
        resp = client.post("/?apikey=k", json=[1, "two", {"email": "a@b.com"}])
        assert resp.status_code == 406


class TestForwarding:
    """Successful deliveries."""

    def test_delivered_with_experiment(self, client, transport):
        resp = client.post(
            "/?apikey=secret-key",
            json=[{"event": "delivered", "email": "a@b.com", "singlesend_name": "exp/test"}],
        )

        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        (events_body,) = transport.bodies("log_event")
        assert len(events_body["events"]) == 1
        evt = events_body["events"][0]
        assert evt["eventName"] == "delivered"
        assert evt["user"]["userID"] == stable_id("a@b.com")
        assert evt["user"]["customIDs"]["stableID"] == stable_id("a@b.com")
        assert evt["metadata"] == {"singlesend_name": "exp/test"}

        (exposures_body,) = transport.bodies("log_custom_exposure")
        assert exposures_body["exposures"] == [{
            "user": evt["user"],
            "experimentName": "exp",
            "group": "Test",
        }]

        for request in transport.requests:
            assert request.headers["statsig-api-key"] == "secret-key"

    def test_webhook_path(self, client, transport):
        resp = client.post("/webhook?apikey=k", json={"event": "open", "email": "a@b.com"})
        assert resp.status_code == 200
        assert transport.paths() == ["/v1/log_event"]

    def test_single_object_without_delivered(self, client, transport):
        resp = client.post("/?apikey=k", json={"event": "click", "url": "https://x.test"})
        assert resp.status_code == 200
        assert transport.paths() == ["/v1/log_event"]

    def test_deeply_nested_item_dropped(self, client, transport):
        nested = "[" * 900 + "]" * 900
        body = (
            '[{"event":"open","foo":' + nested + '},'
            '{"event":"delivered","email":"a@b.com"}]'
        ).encode()

        resp = client.post("/?apikey=k", content=body)

        assert resp.status_code == 200
        (events_body,) = transport.bodies("log_event")
        assert events_body["events"][-1]["eventName"] == "delivered"

    def test_absent_fields_not_sent_as_null(self, client, transport):
        resp = client.post("/?apikey=k", json={"event": "open"})
        assert resp.status_code == 200
        (events_body,) = transport.bodies("log_event")
        evt = events_body["events"][0]
        assert "time" not in evt
        assert "email" not in evt["user"]

    def test_json_body_with_other_content_type(self, client, transport):
        resp = client.post(
            "/?apikey=k",
            content=json.dumps([{"event": "open"}]).encode(),
            headers={"content-type": "text/plain"},
        )
        assert resp.status_code == 200


class TestBestEffortDelivery:
    """Outbound failures never change the inbound response."""

    def test_ingestion_error_still_succeeds(self, client_for, make_transport):
        transport = make_transport(status_code=503)
        client = client_for(transport)

        resp = client.post(
            "/?apikey=k",
            json=[{"event": "delivered", "singlesend_name": "exp/control"}],
        )

        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert len(transport.requests) == 2


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["ingestion_base_url"] == "https://ingest.example.test"
        assert data["uptime_s"] >= 0
