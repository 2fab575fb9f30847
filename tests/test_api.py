"""Tests for the HTTP and WebSocket API."""

import pytest
from fastapi.testclient import TestClient

from main import app

from conftest import frame_payload, make_swing


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def swing_payload():
    return [frame_payload(frame) for frame in make_swing()]


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "version": "1.0.0", "active_sessions": 0}


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200


# =============================================================================
# Grading
# =============================================================================

def test_grade_swing(client, swing_payload):
    response = client.post("/api/analysis/grade", json={"frames": swing_payload, "club": "driver"})

    assert response.status_code == 200
    body = response.json()
    assert body["club"] == "driver"
    assert body["frame_count"] == 30
    assert [phase["phase"] for phase in body["phases"]] == [
        "address", "backswing", "top", "downswing", "impact", "follow_through",
    ]
    assert 0 <= body["grade"]["overall"]["score"] <= 100
    assert set(body["grade"]["metrics"]) == {
        "tempo", "rotation", "weight_transfer", "swing_plane", "body_alignment",
    }
    assert body["key_frames"]["address"] == 0
    assert body["consistency"] is None
    assert body["session_id"] is None


def test_grade_with_low_validity(client, swing_payload):
    response = client.post("/api/analysis/grade", json={
        "frames": swing_payload,
        "validation": {"is_valid": False, "score": 20, "errors": ["No club detected"]},
    })

    assert response.status_code == 200
    overall = response.json()["grade"]["overall"]
    assert overall["score"] == 40
    assert overall["letter"] == "F"


def test_grade_rejects_empty_frames(client):
    response = client.post("/api/analysis/grade", json={"frames": []})
    assert response.status_code == 400


def test_grade_rejects_malformed_frame(client, swing_payload):
    del swing_payload[0]["timestamp_ms"]
    response = client.post("/api/analysis/grade", json={"frames": swing_payload})
    assert response.status_code == 422


def test_grade_rejects_unknown_club(client, swing_payload):
    response = client.post("/api/analysis/grade", json={"frames": swing_payload, "club": "croquet_mallet"})
    assert response.status_code == 422


# =============================================================================
# Sessions
# =============================================================================

def test_create_session(client):
    response = client.post("/api/sessions", json={"session_id": "range-day"})

    assert response.status_code == 201
    body = response.json()
    assert body["session_id"] == "range-day"
    assert body["swing_count"] == 0
    assert client.get("/api/health").json()["active_sessions"] == 1


def test_create_session_without_body(client):
    response = client.post("/api/sessions")

    assert response.status_code == 201
    assert response.json()["session_id"].startswith("session_")


def test_unknown_session_is_404(client):
    assert client.get("/api/sessions/nope").status_code == 404
    assert client.get("/api/sessions/nope/consistency").status_code == 404
    assert client.get("/api/sessions/nope/history").status_code == 404
    assert client.delete("/api/sessions/nope").status_code == 404


def test_session_consistency_flow(client, swing_payload):
    request = {"frames": swing_payload, "session_id": "lesson"}
    first = client.post("/api/analysis/grade", json=request).json()
    second = client.post("/api/analysis/grade", json=request).json()

    assert first["session_id"] == "lesson"
    assert first["consistency"]["statistics"]["total_swings"] == 1
    assert second["consistency"]["statistics"]["total_swings"] == 2

    history = client.get("/api/sessions/lesson/history").json()
    assert [entry["id"] for entry in history] == [first["swing_id"], second["swing_id"]]

    consistency = client.get("/api/sessions/lesson/consistency").json()
    assert consistency["statistics"]["total_swings"] == 2
    assert consistency["overall"]["score"] == 100.0

    comparison = client.get(f"/api/sessions/lesson/compare/{second['swing_id']}").json()
    assert comparison["verdict"] == "similar"
    assert comparison["previous_swing_id"] == first["swing_id"]

    assert client.get("/api/sessions/lesson/compare/swing_missing").status_code == 404

    summary = client.get("/api/sessions/lesson").json()
    assert summary["swing_count"] == 2

    assert client.delete("/api/sessions/lesson").status_code == 204
    assert client.get("/api/sessions/lesson").status_code == 404


def test_insufficient_consistency_data(client):
    client.post("/api/sessions", json={"session_id": "fresh"})
    body = client.get("/api/sessions/fresh/consistency").json()

    assert body["overall"]["score"] == 0.0
    assert body["overall"]["description"] == "Insufficient data for consistency analysis"


# =============================================================================
# WebSocket
# =============================================================================

def test_websocket_swing_flow(client, swing_payload):
    with client.websocket_connect("/ws/swing") as websocket:
        started = websocket.receive_json()
        assert started["type"] == "session_started"
        session_id = started["data"]["session_id"]

        for index, frame in enumerate(swing_payload, start=1):
            websocket.send_json({"type": "frame", "data": frame})
            ack = websocket.receive_json()
            assert ack["type"] == "frame_ack"
            assert ack["data"]["buffered"] == index

        websocket.send_json({"type": "grade", "data": {"club": "driver"}})
        result = websocket.receive_json()
        assert result["type"] == "grade_result"
        assert result["data"]["club"] == "driver"
        assert result["data"]["session_id"] == session_id
        assert len(result["data"]["phases"]) == 6

        websocket.send_json({"type": "grade", "data": {}})
        assert websocket.receive_json()["data"]["error"] == "No frames to analyze"

        websocket.send_json({"type": "warmup"})
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert "warmup" in error["data"]["error"]

        websocket.send_json({"type": "end_session"})
        ended = websocket.receive_json()
        assert ended["type"] == "session_ended"
        assert ended["data"]["swing_count"] == 1


def test_websocket_rejects_bad_frame(client):
    with client.websocket_connect("/ws/swing") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "frame", "data": {"landmarks": []}})

        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["data"]["error"].startswith("Invalid frame")


def test_websocket_reset(client, swing_payload):
    with client.websocket_connect("/ws/swing") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "frame", "data": swing_payload[0]})
        websocket.receive_json()

        websocket.send_json({"type": "reset"})
        assert websocket.receive_json()["type"] == "session_reset"

        websocket.send_json({"type": "grade"})
        assert websocket.receive_json()["data"]["error"] == "No frames to analyze"
