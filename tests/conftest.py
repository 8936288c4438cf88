"""
Pytest fixtures for Backend Airdrop tests.

Fake JSON-RPC nodes are served through httpx.MockTransport so no network
is touched. Async code is driven with asyncio.run from sync tests.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import httpx
import pytest

from backend_airdrop.analytics.models import DEFAULT_EARLY_ADOPTER_CUTOFF

# EIP-55 reference vector
WALLET = "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"
WALLET_CHECKSUM = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

NOW = 1_760_000_000
LATEST_BLOCK = 0x800000
LATEST_TS = NOW - 5
RECENT_BLOCK_A = LATEST_BLOCK - 40
RECENT_BLOCK_B = LATEST_BLOCK - 10
HISTORICAL_BLOCK = 0x700004
BLOCK_TIMESTAMPS = {
    LATEST_BLOCK: LATEST_TS,
    RECENT_BLOCK_A: NOW - 200,
    RECENT_BLOCK_B: NOW - 50,
    HISTORICAL_BLOCK: DEFAULT_EARLY_ADOPTER_CUTOFF - 86_400,
}
CONTRACT_A = "0x" + "aa" * 20
CONTRACT_B = "0x2222222222222222222222222222222222222222"
CONTRACT_C = "0x3333333333333333333333333333333333333333"

# Markers a FakeRpcNode handler may return to simulate transport failures
TIMEOUT = object()
CONNECT_ERROR = object()


class FakeRpcNode:
    """
    httpx.MockTransport handler answering JSON-RPC requests by method name.

    responses[method] is either a literal result or a callable(params) -> result.
    A result may be TIMEOUT / CONNECT_ERROR, an httpx.Response (returned as-is),
    or {"__error__": {...}} to answer with an error envelope.
    """

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = dict(responses)
        self.calls: list[tuple[str, list[Any]]] = []

    def methods_called(self) -> list[str]:
        return [m for m, _ in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method, params = body["method"], body["params"]
        self.calls.append((method, params))
        if method not in self.responses:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "method not found"}},
            )
        handler = self.responses[method]
        result = handler(params) if callable(handler) else handler
        if result is TIMEOUT:
            raise httpx.ReadTimeout("read timed out", request=request)
        if result is CONNECT_ERROR:
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(result, httpx.Response):
            return result
        if isinstance(result, dict) and "__error__" in result:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": result["__error__"]})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def _topic(address: str) -> str:
    return "0x" + address[2:].rjust(64, "0")


def _block_by_number(params: list[Any]) -> dict[str, str] | None:
    tag = params[0]
    number = LATEST_BLOCK if tag == "latest" else int(tag, 16)
    if number not in BLOCK_TIMESTAMPS:
        return None
    return {"number": hex(number), "timestamp": hex(BLOCK_TIMESTAMPS[number])}


def _logs(params: list[Any]) -> list[dict[str, Any]]:
    flt = params[0]
    start, end = int(flt["fromBlock"], 16), int(flt["toBlock"], 16)
    entries = [
        {"address": CONTRACT_A, "blockNumber": hex(RECENT_BLOCK_A), "topics": ["0xddf2", _topic(WALLET)]},
        {"address": CONTRACT_B, "blockNumber": hex(RECENT_BLOCK_B), "topics": ["0xddf2", _topic(WALLET)]},
        {"address": CONTRACT_A.upper().replace("0X", "0x"), "blockNumber": hex(RECENT_BLOCK_B), "topics": []},
        {"address": CONTRACT_C, "blockNumber": hex(HISTORICAL_BLOCK), "topics": ["0xddf2", _topic(WALLET)]},
    ]
    return [e for e in entries if start <= int(e["blockNumber"], 16) <= end]


def healthy_target_responses() -> dict[str, Any]:
    """Target chain answering every call: 12 MON, 250 txs, owns the NFT, activity in both windows."""
    return {
        "eth_getBalance": hex(12 * 10**18),
        "eth_getTransactionCount": hex(250),
        "eth_call": "0x" + "0" * 63 + "1",
        "eth_getBlockByNumber": _block_by_number,
        "eth_getLogs": _logs,
    }


@pytest.fixture
def target_node() -> FakeRpcNode:
    return FakeRpcNode(healthy_target_responses())


@pytest.fixture
def reference_node() -> FakeRpcNode:
    return FakeRpcNode({"eth_getTransactionCount": hex(15)})


@pytest.fixture
def run_collect() -> Callable[..., Any]:
    """
    Return run(target_node, reference_node=None, settings=None, cutoff=...) -> WalletSignals.

    Builds JsonRpcClients on MockTransport and runs ChainSignalCollector.collect.
    """
    from backend_airdrop.analytics.signal_collector import ChainSignalCollector
    from backend_airdrop.config.settings import Settings
    from backend_airdrop.rpc.client import JsonRpcClient

    def run(
        target: FakeRpcNode,
        reference: FakeRpcNode | None = None,
        settings: Settings | None = None,
        address: str = WALLET,
        cutoff: int = DEFAULT_EARLY_ADOPTER_CUTOFF,
    ):
        async def _go():
            async with JsonRpcClient("https://target.test/rpc", transport=httpx.MockTransport(target)) as t:
                ref_client = None
                if reference is not None:
                    ref_client = JsonRpcClient("https://reference.test/rpc", transport=httpx.MockTransport(reference))
                try:
                    collector = ChainSignalCollector(t, settings or Settings(), reference=ref_client, clock=lambda: NOW)
                    return await collector.collect(address, early_adopter_cutoff=cutoff)
                finally:
                    if ref_client is not None:
                        await ref_client.aclose()

        return asyncio.run(_go())

    return run


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep developer .env / AIRDROP_* settings out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("AIRDROP_") or key in (
            "TARGET_RPC_URL",
            "REFERENCE_RPC_URL",
            "RPC_TIMEOUT_SEC",
            "TX_COUNT_CEILING",
            "ASSUME_EARLY_ADOPTER_WHEN_UNKNOWN",
            "LOG_WINDOW_BLOCKS",
            "HISTORICAL_ANCHOR_BLOCK",
            "HISTORICAL_WINDOW_BLOCKS",
            "NFT_CONTRACT_ADDRESS",
            "DISCONNECT_POLL_SEC",
        ):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("backend_airdrop.config.env.load_airdrop_env", lambda: None)
    monkeypatch.setattr("backend_airdrop.config.settings.load_airdrop_env", lambda: None)
    monkeypatch.setattr("backend_airdrop.config.requirements.load_airdrop_env", lambda: None)
