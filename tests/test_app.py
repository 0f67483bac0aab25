"""HTTP endpoints."""
import asyncio
from datetime import datetime

from starlette.testclient import TestClient

from seigate.app import EventSourceResponse, create_app
from seigate.config import load_config
from seigate.handler import MessageHandler
from seigate.registry import SessionRegistry
from seigate.session import SessionManager, SessionState


def make_app(backend):
    return create_app(load_config(), backend=backend)


def test_root_and_health_before_startup(backend):
    client = TestClient(make_app(backend))

    root = client.get("/").json()
    assert root["status"] == "initializing"
    assert root["activeConnections"] == 0

    health = client.get("/health").json()
    assert health["server"] == "initializing"
    assert health["serverInitialized"] is False
    assert health["connectedSessionIds"] == []


def test_endpoints_unavailable_before_startup(backend):
    client = TestClient(make_app(backend))

    response = client.get("/sse")
    assert response.status_code == 503
    assert response.text == "Server not initialized"

    response = client.post("/messages", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
    assert response.status_code == 503
    assert response.json() == {"error": "Server not initialized"}

    response = client.post("/api/mcp", json={"jsonrpc": "2.0", "id": 4, "method": "get_balance"})
    assert response.status_code == 200
    assert response.json()["error"]["code"] == -32002
    assert response.json()["id"] == 4


def test_lifespan_starts_and_stops_backend(backend):
    with TestClient(make_app(backend)) as client:
        health = client.get("/health").json()
        assert health["serverInitialized"] is True
        assert health["status"] == "ok"
        assert client.get("/").json()["status"] == "ready"
        assert backend.started
    assert backend.closed


def test_messages_without_sessions(backend):
    with TestClient(make_app(backend)) as client:
        response = client.post("/messages", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
        assert response.status_code == 400
        assert response.json()["activeConnections"] == 0


def test_messages_unknown_session(backend):
    with TestClient(make_app(backend)) as client:
        response = client.post("/messages?sessionId=ghost", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
        assert response.status_code == 404
        assert response.json() == {"error": "Session not found"}


def test_messages_invalid_json(backend):
    with TestClient(make_app(backend)) as client:
        response = client.post(
            "/messages?sessionId=abc", content=b"{nope", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400


def test_message_forwarded_to_open_stream(backend):
    app = make_app(backend)
    gateway = app.state.gateway
    with TestClient(app) as client:
        session = client.portal.call(gateway.sessions.open, "abc")
        client.portal.call(session.stream.pending)

        response = client.post("/messages?sessionId=abc", json={"jsonrpc": "2.0", "id": 1, "method": "x"})
        assert response.status_code == 202
        assert response.json() == {"status": "accepted", "sessionId": "abc"}

        frames = client.portal.call(session.stream.pending)
        assert len(frames) == 1
        assert frames[0].startswith("event: message\n")
        assert '"id":1' in frames[0]

        health = client.get("/health").json()
        assert health["activeConnections"] == 1
        assert health["connectedSessionIds"] == ["abc"]


def test_message_session_from_header(backend):
    app = make_app(backend)
    gateway = app.state.gateway
    with TestClient(app) as client:
        client.portal.call(gateway.sessions.open, "one")
        client.portal.call(gateway.sessions.open, "two")
        response = client.post(
            "/messages", json={"jsonrpc": "2.0", "id": 1, "method": "ping"}, headers={"X-Session-ID": "two"}
        )
        assert response.json()["sessionId"] == "two"


def test_malformed_message_keeps_session(backend):
    app = make_app(backend)
    gateway = app.state.gateway
    with TestClient(app) as client:
        client.portal.call(gateway.sessions.open, "abc")
        response = client.post("/messages?sessionId=abc", json={"hello": "world"})
        assert response.status_code == 400
        assert "abc" in gateway.registry


def test_call_endpoint(backend):
    with TestClient(make_app(backend)) as client:
        response = client.post("/api/mcp", json={
            "jsonrpc": "2.0", "id": "req-1", "method": "get_balance", "params": {"address": "0xabc"},
        })
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "req-1"
        assert body["result"]["wei"] == "123456789012345678901234567890"


def test_call_endpoint_parse_error(backend):
    with TestClient(make_app(backend)) as client:
        response = client.post("/api/mcp", content=b"not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 200
        assert response.json() == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}


def test_call_endpoint_unexpected_error_keeps_envelope(backend, monkeypatch):
    async def get_latest_block(network):
        return {"timestamp": datetime(2024, 1, 1)}

    monkeypatch.setattr(backend, "get_latest_block", get_latest_block)
    with TestClient(make_app(backend)) as client:
        response = client.post("/api/mcp", json={"jsonrpc": "2.0", "id": 11, "method": "get_latest_block"})
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == 11
        assert body["error"]["code"] == -32603


def test_cors_preflight(backend):
    client = TestClient(make_app(backend))
    response = client.options("/api/mcp", headers={
        "Origin": "http://example.com",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "Content-Type",
    })
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in ("*", "http://example.com")


def test_event_stream_closes_session_on_disconnect(backend):
    async def run_test():
        registry = SessionRegistry()
        handler = MessageHandler(backend)
        manager = SessionManager(registry, lambda: handler)
        session = await manager.open("abc")
        sent = []
        disconnected = asyncio.Event()

        async def receive():
            await disconnected.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)
            if message["type"] == "http.response.body":
                disconnected.set()

        await EventSourceResponse(session)({"type": "http"}, receive, send)
        return registry, session, sent

    registry, session, sent = asyncio.run(run_test())
    assert "abc" not in registry
    assert session.state is SessionState.CLOSED
    assert sent[0]["status"] == 200
    assert (b"content-type", b"text/event-stream; charset=utf-8") in sent[0]["headers"]
    assert b"session_init" in sent[1]["body"]
