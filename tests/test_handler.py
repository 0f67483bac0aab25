"""Message handler protocol over a stream."""
import asyncio
import json

import pytest

from seigate.errors import InvalidMessage
from seigate.handler import MessageHandler
from seigate.operations import OPERATIONS
from seigate.stream import OutputStream


def exchange(backend, *messages):
    """Attach a fresh stream, feed messages, return the JSON responses written."""
    async def run_test():
        handler = MessageHandler(backend)
        stream = OutputStream("s1")
        await handler.attach(stream)
        for message in messages:
            await stream.deliver(message)
        return [json.loads(f.split("data: ", 1)[1]) for f in stream.pending()]

    return asyncio.run(run_test())


def test_initialize(backend):
    [response] = exchange(backend, {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}})
    assert response["id"] == 1
    assert response["result"]["serverInfo"]["name"] == "SEI MCP Server"
    assert "tools" in response["result"]["capabilities"]


def test_tools_list_covers_every_operation(backend):
    [response] = exchange(backend, {"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    tools = {t["name"]: t for t in response["result"]["tools"]}
    assert set(tools) == set(OPERATIONS)
    assert len(tools) == 17
    assert "tokenAddress" in tools["get_erc20_balance"]["inputSchema"]["properties"]


def test_tools_call_returns_text_content(backend):
    [response] = exchange(backend, {
        "jsonrpc": "2.0", "id": 3, "method": "tools/call",
        "params": {"name": "get_balance", "arguments": {"address": "0xabc"}},
    })
    result = response["result"]
    assert result["isError"] is False
    payload = json.loads(result["content"][0]["text"])
    assert payload["wei"] == "123456789012345678901234567890"
    assert backend.calls == [("get_balance", ("0xabc", "sei"))]


def test_tools_call_backend_failure_is_tool_error(backend):
    [response] = exchange(backend, {
        "jsonrpc": "2.0", "id": 4, "method": "tools/call",
        "params": {"name": "get_balance", "arguments": {"address": "0xboom"}},
    })
    assert response["result"]["isError"] is True
    assert "upstream exploded" in response["result"]["content"][0]["text"]


def test_tools_call_unknown_tool(backend):
    [response] = exchange(backend, {
        "jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": {"name": "nope"},
    })
    assert response["error"]["code"] == -32602


def test_unknown_method_gets_error_frame(backend):
    [response] = exchange(backend, {"jsonrpc": "2.0", "id": 6, "method": "resources/list"})
    assert response["error"]["code"] == -32601


def test_notifications_get_no_response(backend):
    assert exchange(backend, {"jsonrpc": "2.0", "method": "notifications/initialized"}) == []


def test_responses_follow_request_order(backend):
    responses = exchange(
        backend,
        {"jsonrpc": "2.0", "id": 1, "method": "ping"},
        {"jsonrpc": "2.0", "id": 2, "method": "ping"},
        {"jsonrpc": "2.0", "id": 3, "method": "ping"},
    )
    assert [r["id"] for r in responses] == [1, 2, 3]


@pytest.mark.parametrize("message", [
    "text",
    {"id": 1, "method": "ping"},
    {"jsonrpc": "1.0", "id": 1, "method": "ping"},
    {"jsonrpc": "2.0", "id": 1},
    {"jsonrpc": "2.0", "id": 1, "method": "ping", "params": [1, 2]},
])
def test_malformed_messages_raise(backend, message):
    with pytest.raises(InvalidMessage):
        exchange(backend, message)


def test_attach_rejects_closed_stream(backend):
    stream = OutputStream("s1")
    stream.close()
    with pytest.raises(RuntimeError):
        asyncio.run(MessageHandler(backend).attach(stream))


def test_late_response_after_close_is_discarded(backend):
    async def run_test():
        handler = MessageHandler(backend)
        stream = OutputStream("s1")
        await handler.attach(stream)
        stream.close()
        await handler.handle(stream, {"jsonrpc": "2.0", "id": 1, "method": "ping"})
        return stream.pending()

    assert asyncio.run(run_test()) == []
