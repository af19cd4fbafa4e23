"""
Pytest fixtures for Node Medic tests. The node is a FakeNode behind
httpx.MockTransport, so no real Ethereum client is needed.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

NOW = 1_700_000_000.0
ENDPOINT = "http://node.test:8545"


def nethermind_health(*, syncing: bool = False, errors: list[str] | None = None, status: str = "Healthy") -> dict[str, Any]:
    """Nethermind /health document shaped like the real health-checks module output."""
    return {
        "status": status,
        "totalDuration": "00:00:00.0121350",
        "entries": {
            "node-health": {
                "data": {"IsSyncing": syncing, "Errors": list(errors or [])},
                "description": "The node is now fully synced with a network. Peers: 12.",
                "duration": "00:00:00.0105932",
                "status": status,
            }
        },
    }


class FakeNode:
    """
    In-memory execution client. Tests mutate attributes, then point an
    RPCClient at it via `transport`.

    failures maps a JSON-RPC method (or a GET path such as "/health") to one of:
    "timeout", "connect", "http500", "garbage", "rpc_error", "null".
    """

    def __init__(self) -> None:
        self.version = "Nethermind/v1.25.4+2bf20c3b/linux-x64/dotnet8.0.0"
        self.block_number = 19_000_000
        self.block_timestamp = int(NOW) - 5
        self.peers = 12
        self.health: dict[str, Any] = nethermind_health()
        self.failures: dict[str, str] = {}
        self.calls: list[str] = []
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _fail(self, mode: str, request: httpx.Request) -> httpx.Response:
        if mode == "timeout":
            raise httpx.ReadTimeout("timed out", request=request)
        if mode == "connect":
            raise httpx.ConnectError("connection refused", request=request)
        if mode == "http500":
            return httpx.Response(500, text="internal error")
        if mode == "garbage":
            return httpx.Response(200, content=b"<html>not json</html>")
        if mode == "rpc_error":
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}},
            )
        if mode == "null":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})
        raise AssertionError(f"unknown failure mode {mode}")

    def _result(self, method: str) -> Any:
        if method == "web3_clientVersion":
            return self.version
        if method == "eth_getBlockByNumber":
            return {
                "number": hex(self.block_number),
                "hash": "0x" + "ab" * 32,
                "timestamp": hex(self.block_timestamp),
                "transactions": [],
            }
        if method == "net_peerCount":
            return hex(self.peers)
        return None

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            path = request.url.path
            self.calls.append("GET " + path)
            if path in self.failures:
                return self._fail(self.failures[path], request)
            if path == "/health":
                return httpx.Response(200, json=self.health)
            return httpx.Response(404, text="not found")

        body = json.loads(request.content)
        method = body["method"]
        self.calls.append(method)
        if method in self.failures:
            return self._fail(self.failures[method], request)
        if method not in ("web3_clientVersion", "eth_getBlockByNumber", "net_peerCount"):
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "method not found"}},
            )
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": self._result(method)})


@pytest.fixture
def fake_node() -> FakeNode:
    return FakeNode()


@pytest.fixture
def rpc(fake_node):
    """RPCClient wired to fake_node; closed after the test."""
    from node_medic.rpc.client import RPCClient

    client = RPCClient(ENDPOINT, timeout_sec=2.0, transport=fake_node.transport)
    yield client
    client.close()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def evaluator(rpc, clock):
    """Evaluator with max 30s lag and min 3 peers."""
    from node_medic.health.evaluator import HealthEvaluator, Thresholds

    return HealthEvaluator(rpc, Thresholds(max_seconds_behind=30, min_peers=3), clock=clock)
