"""
JSON-RPC client for EVM nodes.

Responsibilities:
- POST {jsonrpc, id, method, params} to one configured endpoint over httpx.
- Return the decoded `result` field.
- Raise UpstreamTransportError on network failure, timeout, or non-2xx status,
  and UpstreamProtocolError on an `error` envelope or unusable payload.
- No retries: backoff and fallback policy belongs to the caller.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx

from backend_airdrop.airdrop_logging import get_logger
from backend_airdrop.airdrop_logging.logger import mask_url
from backend_airdrop.core.exceptions import UpstreamProtocolError, UpstreamTransportError

logger = get_logger(__name__)


class JsonRpcClient:
    """
    Async JSON-RPC client bound to one endpoint.

    Use as an async context manager; the underlying httpx.AsyncClient is
    closed on exit unless it was supplied by the caller. Request ids come
    from a per-instance counter so clients never share state.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_sec: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            rpc_url: JSON-RPC HTTP(S) endpoint.
            timeout_sec: Bound for connect, read, write and pool waits of every call.
            http_client: Optional shared client; not closed by this instance.
            transport: Optional httpx transport (tests pass httpx.MockTransport).
        """
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be positive")
        self._rpc_url = rpc_url.strip()
        self._timeout_sec = timeout_sec
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_sec),
            transport=transport,
        )
        self._ids = itertools.count(1)

    @property
    def endpoint(self) -> str:
        """Endpoint with query string masked; safe to log."""
        return mask_url(self._rpc_url)

    async def __aenter__(self) -> "JsonRpcClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _build_body(self, method: str, params: list[Any]) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Perform one JSON-RPC call; raise on transport or RPC error."""
        body = self._build_body(method, list(params or []))
        logger.debug("rpc_call", method=method, rpc_id=body["id"], endpoint=self.endpoint)
        try:
            resp = await self._client.post(self._rpc_url, json=body)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamTransportError(method, f"timed out after {self._timeout_sec}s") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamTransportError(method, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamTransportError(method, str(e) or type(e).__name__) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamProtocolError(method, "response is not valid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamProtocolError(method, "response is not a JSON-RPC object")
        if data.get("error") is not None:
            err = data["error"]
            if isinstance(err, dict):
                raise UpstreamProtocolError(method, str(err.get("message", err)), code=err.get("code"))
            raise UpstreamProtocolError(method, str(err))
        result = data.get("result")
        if result is None:
            raise UpstreamProtocolError(method, "RPC returned no result")
        return result
