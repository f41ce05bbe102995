from fastapi import FastAPI
from fastapi.testclient import TestClient

from gateway.app.routers.health import health_router


def test_healthz_plain_ok(test_app):
    client = TestClient(test_app)
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.text == "ok"


def test_live_is_always_200(test_app):
    client = TestClient(test_app)
    r = client.get("/health/live")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_ready_503_when_components_missing():
    app = FastAPI()
    app.include_router(health_router)
    client = TestClient(app)
    r = client.get("/health/ready")
    assert r.status_code == 503


def test_ready_503_when_broker_disconnected(test_app, fake_publisher):
    fake_publisher.connected = False
    client = TestClient(test_app)
    r = client.get("/health/ready")
    assert r.status_code == 503


def test_ready_200_when_connected(test_app):
    client = TestClient(test_app)
    r = client.get("/health/ready")
    assert r.status_code == 200


def test_ready_tracks_real_publisher_connection_state(test_app, publisher):
    test_app.state.publisher = publisher
    client = TestClient(test_app)
    assert client.get("/health/ready").status_code == 503
