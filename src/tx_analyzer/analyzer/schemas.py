from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TxType(str, Enum):
    """交易类型"""

    DEX_SWAP = "DEX_SWAP"
    NFT_TRANSFER = "NFT_TRANSFER"
    TRANSFER = "TRANSFER"
    CONTRACT_INTERACTION = "CONTRACT_INTERACTION"


class LogEntry(BaseModel):
    """交易收据中的单条事件日志"""

    model_config = ConfigDict(frozen=True)

    address: str
    topics: tuple[str, ...] = ()
    data: str = "0x"

    @property
    def topic0(self) -> str | None:
        return self.topics[0].lower() if self.topics else None


class TransactionRecord(BaseModel):
    """原始交易记录（只读）"""

    model_config = ConfigDict(frozen=True)

    hash: str
    from_address: str
    to_address: str | None = None  # 合约创建时为空
    value: int = 0  # 最小单位（wei）
    gas_used: int = 0
    status: Literal["success", "failed"] = "success"
    logs: tuple[LogEntry, ...] = ()
    block_number: int | None = None

    @property
    def is_contract_creation(self) -> bool:
        return self.to_address is None


class AccountContext(BaseModel):
    """账户历史快照，None 表示查询不可用"""

    model_config = ConfigDict(frozen=True)

    sender_has_failed_tx: bool | None = None
    contract_age_days: int | None = None


class AnalysisResult(BaseModel):
    """交易分析结果"""

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    network: str
    tx_type: TxType
    protocol: str | None = None
    risk_score: float = 0.0
    risk_reasons: list[str] = Field(default_factory=list)
    risk_summary: str = ""
    natural_language_explanation: str = ""

    @property
    def explanation(self) -> str:
        return self.natural_language_explanation
