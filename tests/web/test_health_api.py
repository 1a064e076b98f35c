"""GET /health and GET /api/quality."""

from __future__ import annotations

from path_tracker import __version__


def test_health_returns_200(client):
    resp = client.get("/health")
    assert resp.status_code == 200


def test_health_body(client):
    data = client.get("/health").json()
    assert data["status"] == "ok"
    assert data["version"] == __version__


def test_quality_optimal(client):
    data = client.get("/api/quality", params={"accuracy": 3.0}).json()
    assert data == {"accuracy": 3.0, "tier": "optimal", "usable": True}


def test_quality_poor_and_unusable(client):
    data = client.get("/api/quality", params={"accuracy": 150.0}).json()
    assert data["tier"] == "poor"
    assert data["usable"] is False


def test_quality_requires_accuracy(client):
    assert client.get("/api/quality").status_code == 422
