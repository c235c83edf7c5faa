from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..app_logging import get_logger

logger = get_logger(__name__)

# Etherscan 对“无数据”也返回 status=0
_EMPTY_RESULT_MARKERS = ("no transactions found", "no data found", "no records found")


class EtherscanError(Exception):
    """Etherscan API 错误"""

    def __init__(self, message: str, status: str | None = None):
        super().__init__(message)
        self.status = status


class EtherscanClient:
    """Etherscan API 客户端（兼容 bscscan / polygonscan 等同构浏览器）"""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        rate_limit_per_sec: float = 5,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._last_request_time = 0.0
        self._request_interval = 1.0 / rate_limit_per_sec if rate_limit_per_sec > 0 else 0

    async def _rate_limit(self) -> None:
        """请求限流：并发调用按到达顺序各自预留发送时间槽"""
        if self._request_interval <= 0:
            return
        now = time.time()
        slot = max(now, self._last_request_time + self._request_interval)
        self._last_request_time = slot
        if slot > now:
            await asyncio.sleep(slot - now)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _request(self, params: dict[str, Any]) -> Any:
        """发送请求，返回 result 字段"""
        await self._rate_limit()

        if self.api_key:
            params["apikey"] = self.api_key

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()

        # status 为 "0" 表示失败，但 message 为 "OK" 时仍视为成功
        status = data.get("status")
        message = data.get("message", "")
        result = data.get("result")

        if status == "0" and message != "OK":
            text = f"{message} {result}".lower()
            if any(marker in text for marker in _EMPTY_RESULT_MARKERS):
                logger.debug("etherscan_empty_result", action=params.get("action"))
                return []
            raise EtherscanError(message=str(result), status=status)

        return result

    async def get_contract_creation(self, contract_addresses: list[str]) -> list[dict[str, Any]]:
        """获取合约创建信息，非合约地址返回空列表"""
        logger.debug("etherscan_get_creation", addresses=contract_addresses)
        result = await self._request({
            "module": "contract",
            "action": "getcontractcreation",
            "contractaddresses": ",".join(contract_addresses),
        })
        return result if isinstance(result, list) else []

    async def get_tx_list(
        self,
        address: str,
        start_block: int = 0,
        end_block: int = 99999999,
        page: int = 1,
        offset: int = 100,
        sort: str = "desc",
    ) -> list[dict[str, Any]]:
        """获取地址交易列表"""
        logger.debug("etherscan_get_tx_list", address=address, offset=offset, sort=sort)
        result = await self._request({
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": start_block,
            "endblock": end_block,
            "page": page,
            "offset": offset,
            "sort": sort,
        })
        return result if isinstance(result, list) else []
