"""
Tests for log-based transaction classification (first-match over log order).
"""

from __future__ import annotations

import pytest

from conftest import SENDER, UNREGISTERED_ADDRESS, address_topic
from tx_analyzer.analyzer import EventClassifier, KnownSignatures, LogEntry, TransactionRecord, TxType
from tx_analyzer.analyzer.signatures import (
    APPROVAL_TOPIC,
    SWAP_V2_TOPIC,
    SWAP_V3_TOPIC,
    SYNC_TOPIC,
    TRANSFER_SINGLE_TOPIC,
    TRANSFER_TOPIC,
)

POOL = "0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc"
TOKEN = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
NFT = "0xbc4ca0eda7647a8ab7c2061c2e118a18a936f13d"


def swap_log(topic: str = SWAP_V2_TOPIC) -> LogEntry:
    return LogEntry(address=POOL, topics=(topic, address_topic(SENDER), address_topic(SENDER)))


def erc20_transfer_log() -> LogEntry:
    return LogEntry(
        address=TOKEN,
        topics=(TRANSFER_TOPIC, address_topic(SENDER), address_topic(UNREGISTERED_ADDRESS)),
        data="0x" + "0" * 63 + "1",
    )


def erc721_transfer_log() -> LogEntry:
    return LogEntry(
        address=NFT,
        topics=(TRANSFER_TOPIC, address_topic(SENDER), address_topic(UNREGISTERED_ADDRESS), "0x" + "0" * 63 + "7"),
    )


@pytest.fixture
def classifier(signatures) -> EventClassifier:
    return EventClassifier(signatures)


def test_swap_before_transfer_resolves_to_dex_swap(classifier, make_record):
    record = make_record(logs=[swap_log(), erc20_transfer_log()])
    assert classifier.classify(record) == TxType.DEX_SWAP


def test_transfer_before_swap_resolves_to_transfer(classifier, make_record):
    """Log order decides: the first recognized event wins."""
    record = make_record(logs=[erc20_transfer_log(), swap_log()])
    assert classifier.classify(record) == TxType.TRANSFER


def test_uniswap_v3_swap(classifier, make_record):
    assert classifier.classify(make_record(logs=[swap_log(SWAP_V3_TOPIC)])) == TxType.DEX_SWAP


def test_erc721_transfer_is_nft(classifier, make_record):
    assert classifier.classify(make_record(logs=[erc721_transfer_log()])) == TxType.NFT_TRANSFER


def test_erc1155_transfer_single_is_nft(classifier, make_record):
    log = LogEntry(address=NFT, topics=(TRANSFER_SINGLE_TOPIC, address_topic(SENDER), address_topic(SENDER), address_topic(SENDER)))
    assert classifier.classify(make_record(logs=[log])) == TxType.NFT_TRANSFER


def test_known_events_without_family_are_skipped(classifier, make_record):
    approval = LogEntry(address=TOKEN, topics=(APPROVAL_TOPIC, address_topic(SENDER), address_topic(POOL)))
    sync = LogEntry(address=POOL, topics=(SYNC_TOPIC,))
    record = make_record(logs=[approval, sync, swap_log()])
    assert classifier.classify(record) == TxType.DEX_SWAP


def test_topic_match_is_case_insensitive(classifier, make_record):
    log = LogEntry(address=POOL, topics=(SWAP_V2_TOPIC.upper().replace("0X", "0x"),))
    assert classifier.classify(make_record(logs=[log])) == TxType.DEX_SWAP


def test_unknown_logs_fall_back_to_contract_interaction(classifier, make_record):
    log = LogEntry(address=POOL, topics=("0x" + "12" * 32,))
    assert classifier.classify(make_record(logs=[log], value=5)) == TxType.CONTRACT_INTERACTION


def test_logs_without_topics_are_ignored(classifier, make_record):
    log = LogEntry(address=POOL, topics=())
    assert classifier.classify(make_record(logs=[log])) == TxType.CONTRACT_INTERACTION


def test_empty_logs_with_value_is_transfer(classifier, make_record):
    assert classifier.classify(make_record(logs=[], value=1)) == TxType.TRANSFER


def test_empty_logs_without_value_is_contract_interaction(classifier, make_record):
    assert classifier.classify(make_record(logs=[], value=0)) == TxType.CONTRACT_INTERACTION


def test_custom_signature_table():
    classifier = EventClassifier(KnownSignatures({"0xfeed": "Swap"}))
    record = TransactionRecord(hash="0x1", from_address=SENDER, logs=(LogEntry(address=POOL, topics=("0xFEED",)),))
    assert classifier.classify(record) == TxType.DEX_SWAP
    assert len(classifier.signatures) == 1
