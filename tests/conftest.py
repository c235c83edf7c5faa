"""
Pytest fixtures for the analysis pipeline. LLM and account-history collaborators are stubbed.
"""

from __future__ import annotations

import asyncio

import pytest

from tx_analyzer.analyzer import (
    EventClassifier,
    ExplanationSynthesizer,
    KnownSignatures,
    LogEntry,
    ProtocolResolver,
    RiskScorer,
    TransactionRecord,
    TxAnalyzer,
)
from tx_analyzer.clients import LlmUnavailable
from tx_analyzer.integrations import AccountHistoryUnavailable, ContractRegistry

UNISWAP_V2_ROUTER = "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"
UNREGISTERED_ADDRESS = "0x1234567890abcdef1234567890abcdef12345678"
SENDER = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
TX_HASH = "0x" + "ab" * 32
ONE_ETH = 10**18


def address_topic(address: str) -> str:
    """地址左填充为 32 字节 topic"""
    return "0x" + "0" * 24 + address.lower().removeprefix("0x")


class FailingLlm:
    """Always fails, like an unreachable or rate-limited LLM service."""

    def __init__(self, error: Exception | None = None):
        self.error = error or LlmUnavailable("service down", status_code=503)
        self.calls = 0

    async def complete(self, prompt: str, timeout: float) -> str:
        self.calls += 1
        raise self.error


class CannedLlm:
    def __init__(self, text: str):
        self.text = text
        self.prompts: list[str] = []

    async def complete(self, prompt: str, timeout: float) -> str:
        self.prompts.append(prompt)
        return self.text


class SlowLlm:
    async def complete(self, prompt: str, timeout: float) -> str:
        await asyncio.sleep(10)
        return "too late"


class StubHistory:
    def __init__(self, failed: bool | Exception = False, age_days: int | None | Exception = None):
        self.failed = failed
        self.age_days = age_days

    async def has_failed_tx(self, address: str) -> bool:
        if isinstance(self.failed, Exception):
            raise self.failed
        return self.failed

    async def contract_age_days(self, address: str) -> int | None:
        if isinstance(self.age_days, Exception):
            raise self.age_days
        return self.age_days


class UnavailableHistory:
    async def has_failed_tx(self, address: str) -> bool:
        raise AccountHistoryUnavailable("explorer api key not configured")

    async def contract_age_days(self, address: str) -> int | None:
        raise NotImplementedError


@pytest.fixture
def signatures() -> KnownSignatures:
    return KnownSignatures()


@pytest.fixture
def registry() -> ContractRegistry:
    return ContractRegistry.from_file()


@pytest.fixture
def make_record():
    """Build a TransactionRecord with sensible defaults."""

    def _make(
        to: str | None = UNREGISTERED_ADDRESS,
        value: int = 0,
        logs: list[LogEntry] | None = None,
        status: str = "success",
        tx_hash: str = TX_HASH,
        sender: str = SENDER,
    ) -> TransactionRecord:
        return TransactionRecord(
            hash=tx_hash,
            from_address=sender,
            to_address=to,
            value=value,
            gas_used=21000,
            status=status,
            logs=tuple(logs or ()),
        )

    return _make


@pytest.fixture
def build_analyzer(signatures, registry):
    """Assemble a TxAnalyzer around the given collaborators."""

    def _build(llm=None, history=None, max_score=None, network="ethereum-mainnet") -> TxAnalyzer:
        return TxAnalyzer(
            classifier=EventClassifier(signatures),
            resolver=ProtocolResolver(registry),
            scorer=RiskScorer(history_timeout_s=0.5, max_score=max_score),
            explainer=ExplanationSynthesizer(llm_client=llm, signatures=signatures, timeout_s=0.5),
            history_providers={network: history} if history is not None else None,
        )

    return _build
