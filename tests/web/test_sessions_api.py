"""POST/DELETE /api/sessions and POST /api/sessions/{id}/fixes."""

from __future__ import annotations

_T0 = 1_700_000_000.0


def _walk(n: int) -> list[dict]:
    """*n* fix payloads 2 s and ~11 m apart heading north."""
    return [
        {"latitude": 41.0 + i * 0.0001, "longitude": 29.0, "timestamp": _T0 + i * 2, "accuracy": 4.0, "speed": 5.0}
        for i in range(n)
    ]


def _start(client, user_id: str = "alice") -> str:
    resp = client.post("/api/sessions", json={"user_id": user_id})
    assert resp.status_code == 201
    return resp.json()["session_id"]


def test_start_session(client):
    resp = client.post("/api/sessions", json={"user_id": "alice"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["user_id"] == "alice"
    assert data["session_id"]


def test_second_session_for_same_user_conflicts(client):
    _start(client, "alice")
    assert client.post("/api/sessions", json={"user_id": "alice"}).status_code == 409
    assert client.post("/api/sessions", json={"user_id": "bob"}).status_code == 201


def test_empty_user_id_rejected(client):
    assert client.post("/api/sessions", json={"user_id": ""}).status_code == 422


def test_post_fixes_reports_each_outcome(client):
    session_id = _start(client)
    resp = client.post(f"/api/sessions/{session_id}/fixes", json={"fixes": _walk(7)})
    assert resp.status_code == 200
    data = resp.json()

    assert len(data["results"]) == 7
    assert data["results"][0]["skip_reason"] == "calibrating"
    assert data["results"][0]["quality"] == "optimal"
    assert data["results"][5]["collected"] is True
    assert data["results"][6]["bearing"] == 0.0
    assert data["calibrated"] is True
    assert data["stationary"] is False
    assert data["buffered_points"] == 2


def test_fixes_accept_millisecond_timestamps(client):
    session_id = _start(client)
    fixes = [dict(f, timestamp=f["timestamp"] * 1000) for f in _walk(7)]
    data = client.post(f"/api/sessions/{session_id}/fixes", json={"fixes": fixes}).json()
    assert data["buffered_points"] == 2


def test_out_of_range_fix_reported_invalid(client):
    session_id = _start(client)
    bad = {"latitude": 95.0, "longitude": 29.0, "timestamp": _T0}
    data = client.post(f"/api/sessions/{session_id}/fixes", json={"fixes": [bad]}).json()
    assert data["results"][0]["reason"] == "invalid"
    assert data["results"][0]["accepted"] is False


def test_malformed_fix_body(client):
    session_id = _start(client)
    resp = client.post(f"/api/sessions/{session_id}/fixes", json={"fixes": [{"longitude": 29.0}]})
    assert resp.status_code == 422


def test_fixes_for_unknown_session(client):
    resp = client.post("/api/sessions/nope/fixes", json={"fixes": _walk(1)})
    assert resp.status_code == 404


def test_stop_session_saves_path(client, writer):
    session_id = _start(client)
    client.post(f"/api/sessions/{session_id}/fixes", json={"fixes": _walk(7)})

    resp = client.delete(f"/api/sessions/{session_id}")
    assert resp.status_code == 200
    assert resp.json() == {"session_id": session_id, "user_id": "alice", "paths_submitted": 1}

    assert writer.join(timeout=2.0) is True
    paths = client.get("/api/users/alice/paths").json()["paths"]
    assert len(paths) == 1
    assert paths[0]["point_count"] == 2


def test_stopped_session_is_gone(client):
    session_id = _start(client)
    client.delete(f"/api/sessions/{session_id}")
    assert client.delete(f"/api/sessions/{session_id}").status_code == 404
    assert client.post(f"/api/sessions/{session_id}/fixes", json={"fixes": _walk(1)}).status_code == 404
    # the user may start again
    _start(client)


def test_session_stopped_during_batch_is_404(client, service):
    session_id = _start(client)
    real_parse = service._parser.parse

    def parse(raw):
        service.stop_session(session_id)
        return real_parse(raw)

    service._parser.parse = parse
    resp = client.post(f"/api/sessions/{session_id}/fixes", json={"fixes": _walk(1)})
    assert resp.status_code == 404
