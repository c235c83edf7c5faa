"""
交易获取

根据网络标识和交易哈希，通过 JSON-RPC 获取交易与收据并转换为 TransactionRecord。
"""
from __future__ import annotations

import re
from typing import Any, Protocol

import httpx

from ..analyzer.schemas import LogEntry, TransactionRecord
from ..app_logging import get_logger
from ..config import NetworkConfig, Settings
from .rpc_client import FetchError, RPCClient, RPCError

logger = get_logger(__name__)

TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


class UnsupportedNetwork(FetchError):
    """不支持的网络"""


class InvalidTxHash(FetchError):
    """交易哈希格式错误"""


class TransactionNotFound(FetchError):
    """交易或收据不存在"""


class FetchTransaction(Protocol):
    async def fetch(self, network: str, tx_hash: str) -> TransactionRecord: ...


def parse_int_value(value: str | int | None) -> int:
    """安全解析可能是十六进制或十进制的值"""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    value = value.strip()
    if value == "":
        return 0
    if value.startswith(("0x", "0X")):
        return int(value, 16)
    return int(value)


def record_from_rpc(tx: dict[str, Any], receipt: dict[str, Any]) -> TransactionRecord:
    """RPC 交易 + 收据 → TransactionRecord，字段格式错误时抛出 RPCError"""
    try:
        return _build_record(tx, receipt)
    except (TypeError, ValueError) as e:
        raise RPCError(f"Malformed RPC response: {e}") from e


def _build_record(tx: dict[str, Any], receipt: dict[str, Any]) -> TransactionRecord:
    logs = tuple(
        LogEntry(
            address=log.get("address", ""),
            topics=tuple(log.get("topics") or ()),
            data=log.get("data") or "0x",
        )
        for log in receipt.get("logs") or []
    )

    # 拜占庭分叉前的收据没有 status 字段
    raw_status = receipt.get("status")
    failed = raw_status is not None and parse_int_value(raw_status) != 1

    block_number = tx.get("blockNumber")

    return TransactionRecord(
        hash=tx.get("hash", ""),
        from_address=tx.get("from", ""),
        to_address=tx.get("to") or None,
        value=parse_int_value(tx.get("value")),
        gas_used=parse_int_value(receipt.get("gasUsed")),
        status="failed" if failed else "success",
        logs=logs,
        block_number=parse_int_value(block_number) if block_number is not None else None,
    )


class TxFetcher:
    """基于 JSON-RPC 的交易获取"""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self.network_configs = settings.get_network_configs()
        self._transport = transport

    def _get_network_config(self, network: str) -> NetworkConfig:
        config = self.network_configs.get(network)
        if not config:
            raise UnsupportedNetwork(f"Unsupported network: {network}")
        return config

    def _get_rpc_client(self, config: NetworkConfig) -> RPCClient:
        return RPCClient(
            rpc_url=config.rpc_url,
            timeout=self.settings.rpc_timeout_s,
            transport=self._transport,
        )

    async def fetch(self, network: str, tx_hash: str) -> TransactionRecord:
        config = self._get_network_config(network)
        if not TX_HASH_RE.match(tx_hash or ""):
            raise InvalidTxHash(f"Invalid transaction hash: {tx_hash!r}")

        rpc = self._get_rpc_client(config)

        tx = await rpc.get_transaction_by_hash(tx_hash)
        if not tx:
            raise TransactionNotFound(f"Transaction not found: {tx_hash}")

        receipt = await rpc.get_transaction_receipt(tx_hash)
        if not receipt:
            # 交易仍在 mempool 中
            raise TransactionNotFound(f"Receipt not found: {tx_hash}")

        record = record_from_rpc(tx, receipt)
        logger.info(
            "transaction_fetched",
            network=network,
            tx_hash=tx_hash,
            logs_count=len(record.logs),
            status=record.status,
        )
        return record
