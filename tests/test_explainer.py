"""
Tests for explanation synthesis and its template fallback.
"""

from __future__ import annotations

import json

import pytest

from conftest import ONE_ETH, SENDER, UNISWAP_V2_ROUTER, CannedLlm, FailingLlm, SlowLlm
from tx_analyzer.analyzer import ExplanationSynthesizer, LogEntry, TxType
from tx_analyzer.analyzer.explainer import MAX_PROMPT_LOGS, format_native_value
from tx_analyzer.analyzer.signatures import SWAP_V2_TOPIC
from tx_analyzer.clients import LlmMalformedResponse, LlmTimeout

REASONS = ["High value transaction"]


def test_fallback_with_reasons():
    text = ExplanationSynthesizer.fallback(TxType.DEX_SWAP, "Uniswap", 0.1, REASONS)
    assert text == (
        "This transaction is a token swap on a decentralized exchange involving Uniswap."
        " Risk score 0.10 based on: High value transaction."
    )


def test_fallback_without_reasons_or_protocol():
    text = ExplanationSynthesizer.fallback(TxType.CONTRACT_INTERACTION, None, 0.0, [])
    assert text == (
        "This transaction is a smart contract interaction involving an unknown contract."
        " No risk factors detected."
    )


def test_fallback_names_every_tx_type():
    for tx_type in TxType:
        assert ExplanationSynthesizer.fallback(tx_type, None, 0.0, [])


@pytest.mark.asyncio
async def test_no_client_uses_fallback(make_record):
    explainer = ExplanationSynthesizer()
    text = await explainer.explain(make_record(), TxType.TRANSFER, None, 0.0, [])
    assert text == ExplanationSynthesizer.fallback(TxType.TRANSFER, None, 0.0, [])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [None, LlmTimeout("timeout"), LlmMalformedResponse("no choices"), RuntimeError("boom")],
)
async def test_llm_failure_uses_fallback(make_record, error):
    llm = FailingLlm(error)
    explainer = ExplanationSynthesizer(llm_client=llm)

    text = await explainer.explain(make_record(), TxType.DEX_SWAP, "Uniswap", 0.1, REASONS)

    assert llm.calls == 1
    assert text == ExplanationSynthesizer.fallback(TxType.DEX_SWAP, "Uniswap", 0.1, REASONS)


@pytest.mark.asyncio
async def test_slow_llm_times_out(make_record):
    explainer = ExplanationSynthesizer(llm_client=SlowLlm(), timeout_s=0.05)
    text = await explainer.explain(make_record(), TxType.TRANSFER, None, 0.0, [])
    assert text.startswith("This transaction is a value transfer")


@pytest.mark.asyncio
async def test_llm_text_is_used(make_record):
    llm = CannedLlm("  A swap of ETH for USDC on Uniswap.\n")
    explainer = ExplanationSynthesizer(llm_client=llm)
    text = await explainer.explain(make_record(), TxType.DEX_SWAP, "Uniswap", 0.0, [])
    assert text == "A swap of ETH for USDC on Uniswap."


@pytest.mark.asyncio
async def test_blank_llm_text_uses_fallback(make_record):
    explainer = ExplanationSynthesizer(llm_client=CannedLlm("   "))
    text = await explainer.explain(make_record(), TxType.TRANSFER, None, 0.0, [])
    assert text == ExplanationSynthesizer.fallback(TxType.TRANSFER, None, 0.0, [])


@pytest.mark.asyncio
async def test_prompt_carries_transaction_context(make_record):
    llm = CannedLlm("ok")
    explainer = ExplanationSynthesizer(llm_client=llm)
    logs = [LogEntry(address="0xpool", topics=(SWAP_V2_TOPIC,))]
    record = make_record(to=UNISWAP_V2_ROUTER, value=11 * ONE_ETH, logs=logs)

    await explainer.explain(record, TxType.DEX_SWAP, "Uniswap", 0.1, REASONS)

    prompt = llm.prompts[0]
    assert SENDER in prompt
    assert UNISWAP_V2_ROUTER in prompt
    assert "DEX_SWAP" in prompt
    assert "Uniswap" in prompt
    assert "High value transaction" in prompt
    assert '"event": "Swap"' in prompt


def test_prompt_truncates_logs(make_record):
    logs = [LogEntry(address=f"0x{i:040x}") for i in range(MAX_PROMPT_LOGS + 5)]
    prompt = ExplanationSynthesizer().build_prompt(make_record(logs=logs), TxType.CONTRACT_INTERACTION, None, 0.0, [])

    body = prompt.split("```json\n", 1)[1].rsplit("```", 1)[0]
    context = json.loads(body)
    assert len(context["logs"]) == MAX_PROMPT_LOGS
    assert context["logs_total"] == MAX_PROMPT_LOGS + 5
    assert context["to"] != "(contract creation)"


def test_prompt_marks_contract_creation(make_record):
    prompt = ExplanationSynthesizer().build_prompt(make_record(to=None), TxType.CONTRACT_INTERACTION, None, 0.0, [])
    assert "(contract creation)" in prompt


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0"),
        (ONE_ETH, "1"),
        (11 * ONE_ETH, "11"),
        (ONE_ETH // 2, "0.5"),
        (1, "0.000000000000000001"),
    ],
)
def test_format_native_value(value, expected):
    assert format_native_value(value) == expected
