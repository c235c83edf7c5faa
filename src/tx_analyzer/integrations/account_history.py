"""
账户历史查询

风险评分中“新合约”“发送方历史失败交易”两个因子依赖的外部数据。
查询不可用时抛出 AccountHistoryUnavailable，由评分器跳过对应因子。
"""
from __future__ import annotations

import time
from typing import Callable, Protocol

import httpx

from ..app_logging import get_logger
from .contract_registry import normalize_address
from .etherscan_client import EtherscanClient, EtherscanError

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400


class AccountHistoryUnavailable(Exception):
    """账户历史数据不可用"""


class AccountHistoryProvider(Protocol):
    async def has_failed_tx(self, address: str) -> bool: ...

    async def contract_age_days(self, address: str) -> int | None: ...


class EtherscanAccountHistory:
    """基于 Etherscan 的账户历史实现"""

    def __init__(
        self,
        client: EtherscanClient,
        lookback: int = 100,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.lookback = lookback
        self._clock = clock

    def _ensure_configured(self) -> None:
        if not self.client.api_key:
            raise AccountHistoryUnavailable("explorer api key not configured")

    async def has_failed_tx(self, address: str) -> bool:
        """发送方最近的交易中是否存在执行失败的记录"""
        self._ensure_configured()
        try:
            txs = await self.client.get_tx_list(address, offset=self.lookback, sort="desc")
        except (EtherscanError, httpx.HTTPError) as e:
            raise AccountHistoryUnavailable(f"tx list lookup failed: {e}") from e

        sender = normalize_address(address)
        return any(
            tx.get("isError") == "1" and normalize_address(tx.get("from")) == sender
            for tx in txs
        )

    async def contract_age_days(self, address: str) -> int | None:
        """合约部署至今的天数，非合约地址返回 None"""
        self._ensure_configured()
        try:
            creation = await self.client.get_contract_creation([address])
            if not creation:
                return None

            timestamp = creation[0].get("timestamp")
            if not timestamp:
                # 旧版接口不返回时间戳，退化为最早一笔交易的时间
                first_txs = await self.client.get_tx_list(address, offset=1, sort="asc")
                if not first_txs:
                    return None
                timestamp = first_txs[0].get("timeStamp")
        except (EtherscanError, httpx.HTTPError) as e:
            raise AccountHistoryUnavailable(f"contract creation lookup failed: {e}") from e

        try:
            created_at = int(timestamp)
        except (TypeError, ValueError) as e:
            raise AccountHistoryUnavailable(f"invalid creation timestamp: {timestamp!r}") from e

        age = int((self._clock() - created_at) // SECONDS_PER_DAY)
        return max(age, 0)
