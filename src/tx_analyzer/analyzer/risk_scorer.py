from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex

from ..app_logging import get_logger
from ..integrations.account_history import AccountHistoryProvider, AccountHistoryUnavailable
from .schemas import AccountContext, LogEntry, TransactionRecord
from .signatures import APPROVAL_FOR_ALL_TOPIC, APPROVAL_TOPIC, TRANSFER_TOPIC

logger = get_logger(__name__)

MAX_UINT256 = 2**256 - 1
UNLIMITED_APPROVAL_THRESHOLD = MAX_UINT256 * 9 // 10

DEFAULT_HIGH_VALUE_THRESHOLD_WEI = 10 * 10**18
DEFAULT_NEW_CONTRACT_AGE_DAYS = 30

Predicate = Callable[[TransactionRecord, AccountContext], bool]


@dataclass(frozen=True)
class RiskFactor:
    """风险因子：命名的纯函数判定 + 权重 + 原因描述"""

    name: str
    weight: float
    reason: str
    predicate: Predicate

    def applies(self, record: TransactionRecord, context: AccountContext) -> bool:
        return self.predicate(record, context)


def _decode_word(log: LogEntry, abi_type: str) -> int | bool | None:
    """解码日志 data 中的单个非 indexed 参数"""
    if not log.data or log.data == "0x":
        return None
    try:
        (value,) = abi_decode([abi_type], decode_hex(log.data))
    except (DecodingError, ValueError):
        return None
    return value


def _logs_with_topic(record: TransactionRecord, topic: str) -> list[LogEntry]:
    return [log for log in record.logs if log.topic0 == topic]


def is_new_contract(max_age_days: int) -> Predicate:
    def predicate(record: TransactionRecord, context: AccountContext) -> bool:
        return context.contract_age_days is not None and context.contract_age_days < max_age_days

    return predicate


def sender_has_failed_history(record: TransactionRecord, context: AccountContext) -> bool:
    return context.sender_has_failed_tx is True


def is_high_value(threshold_wei: int) -> Predicate:
    def predicate(record: TransactionRecord, context: AccountContext) -> bool:
        return record.value > threshold_wei

    return predicate


def has_unlimited_approval(record: TransactionRecord, context: AccountContext) -> bool:
    for log in _logs_with_topic(record, APPROVAL_TOPIC):
        # ERC-721 Approval 的 tokenId 为 indexed，不是额度
        if len(log.topics) != 3:
            continue
        amount = _decode_word(log, "uint256")
        if isinstance(amount, int) and amount >= UNLIMITED_APPROVAL_THRESHOLD:
            return True
    return False


def has_approval_for_all(record: TransactionRecord, context: AccountContext) -> bool:
    return any(
        _decode_word(log, "bool") is True
        for log in _logs_with_topic(record, APPROVAL_FOR_ALL_TOPIC)
    )


def has_zero_address_transfer(record: TransactionRecord, context: AccountContext) -> bool:
    for log in _logs_with_topic(record, TRANSFER_TOPIC):
        if len(log.topics) < 3:
            continue
        try:
            if int(log.topics[2], 16) == 0:
                return True
        except ValueError:
            continue
    return False


def execution_failed(record: TransactionRecord, context: AccountContext) -> bool:
    return record.status == "failed"


def build_default_factors(
    high_value_threshold_wei: int = DEFAULT_HIGH_VALUE_THRESHOLD_WEI,
    new_contract_age_days: int = DEFAULT_NEW_CONTRACT_AGE_DAYS,
) -> tuple[RiskFactor, ...]:
    """默认风险因子表，顺序即原因输出顺序"""
    return (
        RiskFactor("new_contract", 0.3, "Contract deployed recently", is_new_contract(new_contract_age_days)),
        RiskFactor("sender_failed_history", 0.2, "Sender has previous failed transactions", sender_has_failed_history),
        RiskFactor("high_value", 0.1, "High value transaction", is_high_value(high_value_threshold_wei)),
        RiskFactor("unlimited_approval", 0.3, "Unlimited token approval granted", has_unlimited_approval),
        RiskFactor("approval_for_all", 0.2, "Operator approved for all NFTs", has_approval_for_all),
        RiskFactor("zero_address_transfer", 0.2, "Tokens sent to the zero address", has_zero_address_transfer),
        RiskFactor("execution_failed", 0.1, "Transaction execution failed", execution_failed),
    )


class RiskScorer:
    """表驱动的启发式风险评分器

    score 为命中因子权重之和。默认不封顶；配置 max_score 时在求和之后统一截断。
    """

    def __init__(
        self,
        factors: tuple[RiskFactor, ...] | None = None,
        history_timeout_s: float = 10.0,
        max_score: float | None = None,
    ):
        self.factors = tuple(factors) if factors is not None else build_default_factors()
        self.history_timeout_s = history_timeout_s
        self.max_score = max_score

    def score(
        self,
        record: TransactionRecord,
        context: AccountContext | None = None,
    ) -> tuple[float, list[str]]:
        context = context or AccountContext()
        total = 0.0
        reasons: list[str] = []

        for factor in self.factors:
            if factor.applies(record, context):
                total += factor.weight
                reasons.append(factor.reason)

        if self.max_score is not None:
            total = min(total, self.max_score)

        return total, reasons

    async def gather_context(
        self,
        record: TransactionRecord,
        history: AccountHistoryProvider | None,
    ) -> AccountContext:
        """并发查询账户历史；任一查询不可用时对应字段为 None"""
        if history is None:
            return AccountContext()

        sender_failed, contract_age = await asyncio.gather(
            self._lookup("sender_failed_history", history.has_failed_tx, record.from_address),
            self._lookup("contract_age", history.contract_age_days, record.to_address),
        )
        return AccountContext(sender_has_failed_tx=sender_failed, contract_age_days=contract_age)

    async def _lookup(
        self,
        name: str,
        call: Callable[[str], Awaitable[bool | int | None]],
        address: str | None,
    ) -> bool | int | None:
        if not address:
            return None
        try:
            return await asyncio.wait_for(call(address), timeout=self.history_timeout_s)
        except (AccountHistoryUnavailable, NotImplementedError) as e:
            logger.info("account_history_skipped", lookup=name, reason=str(e) or type(e).__name__)
        except asyncio.TimeoutError:
            logger.warning("account_history_skipped", lookup=name, reason="timeout")
        except Exception as e:
            logger.warning("account_history_error", lookup=name, error=str(e))
        return None
