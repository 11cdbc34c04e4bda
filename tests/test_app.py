"""HTTP and WebSocket endpoint tests with fake gateways."""

import base64

import pytest
from fastapi.testclient import TestClient

from viva.main import create_app


@pytest.fixture
def client(stt, llm, tts):
    app = create_app(stt=stt, llm=llm, tts=tts)
    with TestClient(app) as client:
        yield client


def _until_idle(ws, limit: int = 50) -> list[dict]:
    messages = []
    for _ in range(limit):
        msg = ws.receive_json()
        messages.append(msg)
        if msg == {"type": "state_change", "state": "idle"}:
            return messages
    raise AssertionError(f"no idle state in {messages}")


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert set(data["providers"]) == {"stt", "llm", "tts"}
    assert data["sessions"] == 0


def test_voices(client):
    data = client.get("/voices").json()
    assert data["default"] == "aura-asteria-en"
    assert len(data["voices"]) == 11
    assert {"id", "name", "gender", "style", "bestFor"} <= set(data["voices"][0])


def test_ws_text_conversation(client, llm):
    with client.websocket_connect("/ws/session") as ws:
        ready = ws.receive_json()
        assert ready["type"] == "ready"
        assert "aura-asteria-en" in ready["availableVoices"]

        ws.send_json({"type": "start_session", "topic": "Calculus", "sectionTitle": "Limits"})
        started = ws.receive_json()
        assert started["type"] == "session_started"
        assert started["sessionId"] == ready["sessionId"]

        ws.send_json({"type": "text", "content": "What is a limit?"})
        messages = _until_idle(ws)

    types = [m["type"] for m in messages]
    assert types == [
        "state_change",
        "transcript",
        "transcript",
        "state_change",
        "audio_chunk",
        "audio_complete",
        "state_change",
    ]
    assert messages[2] == {"type": "transcript", "text": llm.reply, "isUser": False}


def test_ws_audio_conversation(client, stt):
    with client.websocket_connect("/ws/session") as ws:
        ws.receive_json()
        ws.send_json({"type": "start_session"})
        ws.receive_json()

        ws.send_json({"type": "audio", "data": base64.b64encode(b"utterance").decode()})
        messages = _until_idle(ws)

    assert stt.calls == [b"utterance"]
    assert messages[1] == {"type": "transcript_partial", "text": "..."}
    assert messages[2]["text"] == stt.transcript


def test_ws_bad_message_gets_error(client):
    with client.websocket_connect("/ws/session") as ws:
        ws.receive_json()
        ws.send_text("this is not json")
        err = ws.receive_json()
        assert err["type"] == "error"

        ws.send_json({"type": "interrupt"})
        assert ws.receive_json() == {"type": "state_change", "state": "idle"}


def test_ws_binary_frame_gets_error_and_session_survives(client):
    with client.websocket_connect("/ws/session") as ws:
        ready = ws.receive_json()
        ws.send_bytes(b"\x00\x01garbage")
        err = ws.receive_json()
        assert err["type"] == "error"

        ws.send_json({"type": "start_session", "topic": "Calculus"})
        started = ws.receive_json()
        assert started["type"] == "session_started"
        assert started["sessionId"] == ready["sessionId"]


def test_ws_json_in_binary_frame_is_accepted(client):
    with client.websocket_connect("/ws/session") as ws:
        ws.receive_json()
        ws.send_bytes(b'{"type": "start_session"}')
        assert ws.receive_json()["type"] == "session_started"


def test_metrics_endpoint_counts_turns(client):
    with client.websocket_connect("/ws/session") as ws:
        ws.receive_json()
        ws.send_json({"type": "start_session"})
        ws.receive_json()
        ws.send_json({"type": "text", "content": "Hello?"})
        _until_idle(ws)

    data = client.get("/metrics").json()
    assert data["counters"]["session.turns"] == 1
    assert "session.stage_ms{stage=llm}" in data["histograms"]
