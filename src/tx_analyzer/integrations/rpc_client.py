from __future__ import annotations

from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..app_logging import get_logger

logger = get_logger(__name__)


class FetchError(Exception):
    """交易获取失败"""


class RPCError(FetchError):
    """RPC 调用错误"""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class RPCClient:
    """EVM JSON-RPC 客户端"""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._transport = transport
        self._request_id = 0

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            return response.json()

    async def _call(self, method: str, params: list[Any]) -> Any:
        """执行 RPC 调用"""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._next_id(),
        }

        try:
            data = await self._post(payload)
        except httpx.HTTPError as e:
            raise RPCError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise RPCError(f"{method} returned invalid JSON") from e

        if "error" in data:
            error = data["error"]
            raise RPCError(
                message=error.get("message", "Unknown RPC error"),
                code=error.get("code"),
            )

        return data.get("result")

    async def get_transaction_by_hash(self, tx_hash: str) -> dict[str, Any] | None:
        """获取交易详情"""
        logger.debug("rpc_get_transaction", tx_hash=tx_hash)
        return await self._call("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """获取交易收据"""
        logger.debug("rpc_get_receipt", tx_hash=tx_hash)
        return await self._call("eth_getTransactionReceipt", [tx_hash])
