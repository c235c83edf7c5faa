from __future__ import annotations

from .schemas import LogEntry, TransactionRecord, TxType
from .signatures import KnownSignatures

# 事件名 → 交易类型（未列出的已知事件不参与分类）
EVENT_FAMILIES: dict[str, TxType] = {
    "Swap": TxType.DEX_SWAP,
    "TransferSingle": TxType.NFT_TRANSFER,
    "TransferBatch": TxType.NFT_TRANSFER,
    "Transfer": TxType.TRANSFER,
}

# ERC-721 Transfer 的 tokenId 为 indexed，共 4 个 topic
ERC721_TRANSFER_TOPIC_COUNT = 4


class EventClassifier:
    """基于事件日志的交易分类器

    按日志顺序扫描，第一个命中已知分类的事件决定交易类型。
    """

    def __init__(self, signatures: KnownSignatures):
        self.signatures = signatures

    def classify(self, record: TransactionRecord) -> TxType:
        for log in record.logs:
            tx_type = self.classify_log(log)
            if tx_type is not None:
                return tx_type

        if not record.logs and record.value > 0:
            return TxType.TRANSFER
        return TxType.CONTRACT_INTERACTION

    def classify_log(self, log: LogEntry) -> TxType | None:
        """单条日志的分类，无法归类时返回 None"""
        name = self.signatures.lookup(log.topic0)
        if name is None:
            return None

        family = EVENT_FAMILIES.get(name)
        if family is TxType.TRANSFER and len(log.topics) >= ERC721_TRANSFER_TOPIC_COUNT:
            return TxType.NFT_TRANSFER
        return family
