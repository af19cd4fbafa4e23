"""
JSON-RPC client for the node's HTTP endpoint.

Responsibilities:
- Send one JSON-RPC 2.0 request per call over a shared, connection-reusing
  httpx.Client with a bounded timeout.
- Decode the response envelope and map every failure onto a distinct
  RPCError subclass (transport, timeout, HTTP status, decode, RPC error object).
- No retries: a failed call is reported to the caller, which decides.
"""

from __future__ import annotations

from typing import Any

import httpx

from node_medic.core.exceptions import (
    RPCDecodeError,
    RPCResponseError,
    RPCStatusError,
    RPCTimeoutError,
    RPCTransportError,
)
from node_medic.rpc.models import BlockHeader, parse_quantity

DEFAULT_TIMEOUT_SEC = 5.0
JSONRPC_VERSION = "2.0"
REQUEST_ID = 1


def build_rpc_body(method: str, params: list[Any] | None = None) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "method": method,
        "params": list(params or []),
        "id": REQUEST_ID,
    }


class RPCClient:
    """
    Client bound to one node endpoint.

    One httpx.Client is created per RPCClient and reused for every call, so
    connections are pooled across checks and evaluations. Use as a context
    manager or call close() on shutdown.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            endpoint: Node JSON-RPC URL (e.g. http://localhost:8545).
            timeout_sec: Connect/read/write/pool timeout for every request.
            transport: Optional httpx transport (tests inject httpx.MockTransport).
        """
        if not endpoint.strip():
            raise ValueError("endpoint must be non-empty")
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be positive")
        self._endpoint = endpoint.strip().rstrip("/")
        self._timeout_sec = timeout_sec
        self._http = httpx.Client(
            timeout=httpx.Timeout(timeout_sec),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "RPCClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _send(self, method_label: str, request: httpx.Request) -> httpx.Response:
        try:
            resp = self._http.send(request)
        except httpx.TimeoutException as e:
            raise RPCTimeoutError(
                f"timed out after {self._timeout_sec}s: {e}",
                method=method_label,
                url=str(request.url),
            ) from e
        except httpx.TransportError as e:
            raise RPCTransportError(
                f"transport error: {e}", method=method_label, url=str(request.url)
            ) from e
        if not resp.is_success:
            raise RPCStatusError(
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                payload=resp.content,
                method=method_label,
                url=str(request.url),
            )
        return resp

    def _decode_json(self, method_label: str, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise RPCDecodeError(
                f"malformed JSON: {e}",
                payload=resp.content,
                method=method_label,
                url=str(resp.request.url),
            ) from e

    def call(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Perform one JSON-RPC call and return the envelope's `result`.

        Raises:
            RPCTimeoutError / RPCTransportError: the request never completed.
            RPCStatusError: non-2xx HTTP status.
            RPCDecodeError: body is not a JSON-RPC envelope.
            RPCResponseError: envelope carries an `error` object.
        """
        request = self._http.build_request(
            "POST", self._endpoint, json=build_rpc_body(method, params)
        )
        resp = self._send(method, request)
        data = self._decode_json(method, resp)
        if not isinstance(data, dict):
            raise RPCDecodeError(
                f"expected JSON-RPC envelope object, got {type(data).__name__}",
                payload=resp.content,
                method=method,
                url=self._endpoint,
            )
        err = data.get("error")
        if err is not None:
            code = err.get("code") if isinstance(err, dict) else None
            message = err.get("message") if isinstance(err, dict) else str(err)
            raise RPCResponseError(
                f"rpc error: {message}", code=code, method=method, url=self._endpoint
            )
        if "result" not in data:
            raise RPCDecodeError(
                "envelope has neither result nor error",
                payload=resp.content,
                method=method,
                url=self._endpoint,
            )
        return data["result"]

    def get_json(self, path: str) -> Any:
        """GET <endpoint><path> and return the decoded JSON body (vendor health endpoints)."""
        url = self._endpoint + "/" + path.lstrip("/")
        label = "GET " + path
        request = self._http.build_request("GET", url)
        resp = self._send(label, request)
        return self._decode_json(label, resp)

    def client_version(self) -> str:
        """web3_clientVersion, e.g. "Nethermind/v1.25.4+..."."""
        result = self.call("web3_clientVersion")
        if not isinstance(result, str):
            raise RPCDecodeError(
                f"web3_clientVersion: expected string, got {type(result).__name__}",
                payload=repr(result),
                method="web3_clientVersion",
                url=self._endpoint,
            )
        return result

    def latest_block(self) -> BlockHeader:
        """eth_getBlockByNumber("latest", false) decoded to a BlockHeader."""
        method = "eth_getBlockByNumber"
        result = self.call(method, ["latest", False])
        if result is None:
            raise RPCDecodeError("node returned no latest block", method=method, url=self._endpoint)
        try:
            return BlockHeader.from_rpc_result(result)
        except (KeyError, TypeError, ValueError) as e:
            raise RPCDecodeError(
                f"invalid block object: {e}", payload=repr(result), method=method, url=self._endpoint
            ) from e

    def peer_count(self) -> int:
        """net_peerCount decoded from its hex quantity."""
        method = "net_peerCount"
        result = self.call(method)
        try:
            return parse_quantity(result, "peerCount")
        except (TypeError, ValueError) as e:
            raise RPCDecodeError(
                f"invalid peer count: {e}", payload=repr(result), method=method, url=self._endpoint
            ) from e


def call(
    endpoint: str,
    method: str,
    params: list[Any] | None = None,
    *,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
) -> Any:
    """One-shot JSON-RPC call with a short-lived client. Same errors as RPCClient.call."""
    with RPCClient(endpoint, timeout_sec=timeout_sec) as client:
        return client.call(method, params)
