from __future__ import annotations

import asyncio
import json
from decimal import Decimal
from typing import Any

from ..app_logging import get_logger
from ..clients.llm_client import LlmClient, LlmError
from .schemas import TransactionRecord, TxType
from .signatures import KnownSignatures

logger = get_logger(__name__)

MAX_PROMPT_LOGS = 10
NATIVE_DECIMALS = 18

TX_TYPE_PHRASES: dict[str, str] = {
    TxType.DEX_SWAP: "a token swap on a decentralized exchange",
    TxType.NFT_TRANSFER: "an NFT transfer",
    TxType.TRANSFER: "a value transfer",
    TxType.CONTRACT_INTERACTION: "a smart contract interaction",
}


def format_native_value(value: int, decimals: int = NATIVE_DECIMALS) -> str:
    """wei → 原生代币数量字符串（去除多余的 0）"""
    amount = Decimal(value) / Decimal(10) ** decimals
    return format(amount.normalize(), "f")


class ExplanationSynthesizer:
    """交易解释生成

    优先调用 LLM；未配置客户端、调用失败或超时时使用确定性的模板解释。
    """

    def __init__(
        self,
        llm_client: LlmClient | None = None,
        signatures: KnownSignatures | None = None,
        timeout_s: float = 15.0,
    ):
        self.llm_client = llm_client
        self.signatures = signatures or KnownSignatures()
        self.timeout_s = timeout_s

    async def explain(
        self,
        record: TransactionRecord,
        tx_type: TxType,
        protocol: str | None,
        score: float,
        reasons: list[str],
    ) -> str:
        if self.llm_client is None:
            logger.debug("llm_fallback", reason="not_configured")
            return self.fallback(tx_type, protocol, score, reasons)

        prompt = self.build_prompt(record, tx_type, protocol, score, reasons)
        try:
            text = await asyncio.wait_for(
                self.llm_client.complete(prompt, self.timeout_s),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("llm_fallback", reason="timeout", timeout_s=self.timeout_s)
            return self.fallback(tx_type, protocol, score, reasons)
        except LlmError as e:
            logger.warning("llm_fallback", reason=type(e).__name__, error=str(e), status_code=e.status_code)
            return self.fallback(tx_type, protocol, score, reasons)
        except Exception as e:
            logger.warning("llm_fallback", reason="unexpected_error", error=str(e))
            return self.fallback(tx_type, protocol, score, reasons)

        if not isinstance(text, str) or not text.strip():
            logger.warning("llm_fallback", reason="empty_response")
            return self.fallback(tx_type, protocol, score, reasons)

        return text.strip()

    def build_prompt(
        self,
        record: TransactionRecord,
        tx_type: TxType,
        protocol: str | None,
        score: float,
        reasons: list[str],
    ) -> str:
        """构建结构化提示词"""
        context: dict[str, Any] = {
            "tx_hash": record.hash,
            "from": record.from_address,
            "to": record.to_address or "(contract creation)",
            "value_wei": str(record.value),
            "value": format_native_value(record.value),
            "status": record.status,
            "tx_type": TxType(tx_type).value,
            "protocol": protocol or "unknown",
            "risk_score": round(score, 4),
            "risk_reasons": list(reasons),
            "logs": [
                {
                    "address": log.address,
                    "event": self.signatures.lookup(log.topic0) or "unknown",
                    "topics": len(log.topics),
                }
                for log in record.logs[:MAX_PROMPT_LOGS]
            ],
            "logs_total": len(record.logs),
        }

        return (
            "Please explain the following blockchain transaction:\n\n"
            "```json\n"
            f"{json.dumps(context, ensure_ascii=False, indent=2)}\n"
            "```\n"
        )

    @staticmethod
    def fallback(
        tx_type: TxType,
        protocol: str | None,
        score: float,
        reasons: list[str],
    ) -> str:
        """模板解释，不依赖任何外部服务"""
        phrase = TX_TYPE_PHRASES.get(tx_type, TX_TYPE_PHRASES[TxType.CONTRACT_INTERACTION])
        counterparty = protocol or "an unknown contract"
        text = f"This transaction is {phrase} involving {counterparty}."

        if reasons:
            text += f" Risk score {score:.2f} based on: {'; '.join(reasons)}."
        else:
            text += " No risk factors detected."
        return text
