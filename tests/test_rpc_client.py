"""
Pytest tests for the JSON-RPC client: envelope decoding and typed failures.

Requests are served by httpx.MockTransport; nothing touches the network.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from conftest import CONNECT_ERROR, TIMEOUT, FakeRpcNode


def _call(node, method, params=None, url="https://rpc.test/v1?api-key=secret"):
    from backend_airdrop.rpc.client import JsonRpcClient

    async def _go():
        async with JsonRpcClient(url, timeout_sec=2.0, transport=httpx.MockTransport(node)) as client:
            return await client.call(method, params)

    return asyncio.run(_go())


def test_call_returns_result_and_sends_jsonrpc_envelope():
    """Body is {jsonrpc, id, method, params}; result field is returned as-is."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["method"] = request.method
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x10"})

    result = _call(handler, "eth_getBalance", ["0xabc", "latest"])

    assert result == "0x10"
    assert seen["method"] == "POST"
    assert seen["body"]["jsonrpc"] == "2.0"
    assert seen["body"]["method"] == "eth_getBalance"
    assert seen["body"]["params"] == ["0xabc", "latest"]
    assert isinstance(seen["body"]["id"], int)


def test_request_ids_increase_per_client():
    from backend_airdrop.rpc.client import JsonRpcClient

    node = FakeRpcNode({"eth_blockNumber": "0x1"})
    ids = []

    def handler(request):
        ids.append(json.loads(request.content)["id"])
        return node(request)

    async def _go():
        async with JsonRpcClient("https://rpc.test", transport=httpx.MockTransport(handler)) as client:
            await client.call("eth_blockNumber")
            await client.call("eth_blockNumber")
        async with JsonRpcClient("https://rpc.test", transport=httpx.MockTransport(handler)) as other:
            await other.call("eth_blockNumber")

    asyncio.run(_go())
    assert ids == [1, 2, 1]


def test_error_envelope_raises_protocol_error_with_method_and_message():
    from backend_airdrop.core.exceptions import UpstreamProtocolError, UpstreamRpcError

    node = FakeRpcNode({"eth_getLogs": {"__error__": {"code": -32005, "message": "block range too large"}}})
    with pytest.raises(UpstreamProtocolError) as exc_info:
        _call(node, "eth_getLogs", [{}])

    err = exc_info.value
    assert isinstance(err, UpstreamRpcError)
    assert err.method == "eth_getLogs"
    assert err.message == "block range too large"
    assert err.code == -32005


def test_missing_result_raises_protocol_error():
    from backend_airdrop.core.exceptions import UpstreamProtocolError

    node = FakeRpcNode({"eth_getBlockByNumber": None})
    with pytest.raises(UpstreamProtocolError, match="no result"):
        _call(node, "eth_getBlockByNumber", ["0x1", False])


def test_non_json_body_raises_protocol_error():
    from backend_airdrop.core.exceptions import UpstreamProtocolError

    node = FakeRpcNode({"eth_chainId": httpx.Response(200, text="<html>bad gateway</html>")})
    with pytest.raises(UpstreamProtocolError, match="not valid JSON"):
        _call(node, "eth_chainId")


@pytest.mark.parametrize("marker", [TIMEOUT, CONNECT_ERROR])
def test_transport_failures_raise_transport_error(marker):
    from backend_airdrop.core.exceptions import UpstreamTransportError

    node = FakeRpcNode({"eth_getBalance": marker})
    with pytest.raises(UpstreamTransportError) as exc_info:
        _call(node, "eth_getBalance", ["0xabc", "latest"])
    assert exc_info.value.method == "eth_getBalance"


def test_http_error_status_raises_transport_error():
    from backend_airdrop.core.exceptions import UpstreamTransportError

    node = FakeRpcNode({"eth_getBalance": httpx.Response(429, json={"message": "rate limited"})})
    with pytest.raises(UpstreamTransportError, match="HTTP 429"):
        _call(node, "eth_getBalance", ["0xabc", "latest"])


def test_endpoint_masks_credentials_path_and_query():
    from backend_airdrop.rpc.client import JsonRpcClient

    client = JsonRpcClient("https://user:pw@rpc.test:8545/v1?api-key=secret")
    try:
        assert "secret" not in client.endpoint
        assert "pw" not in client.endpoint
        assert client.endpoint == "https://rpc.test:8545/***"
    finally:
        asyncio.run(client.aclose())


def test_empty_url_rejected():
    from backend_airdrop.rpc.client import JsonRpcClient

    with pytest.raises(ValueError):
        JsonRpcClient("  ")
