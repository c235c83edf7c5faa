"""
已知事件签名表

topic0 → 事件名，进程启动时构建一次，之后只读。
"""
from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

# ERC-20 / ERC-721
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
APPROVAL_TOPIC = "0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925"
APPROVAL_FOR_ALL_TOPIC = "0x17307eab39ab6107e8899845ad3d59bd9653f200f220920489ca2b5937696c31"

# ERC-1155
TRANSFER_SINGLE_TOPIC = "0xc3d58168c5ae7397731d063d5bbf3d657854427343f4c083240f7aacaa2d0f62"
TRANSFER_BATCH_TOPIC = "0x4a39dc06d4c0dbc64b70af90fd698a233a518aa5d07e595d983b8c0526c8f7fb"

# Uniswap V2
SWAP_V2_TOPIC = "0xd78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822"
MINT_V2_TOPIC = "0x4c209b5fc8ad50758f13e2e1088ba56a560dff690a1c6fef26394f4c03821c4f"
BURN_V2_TOPIC = "0xdccd412f0b1252819cb1fd330b93224ca42612892bb3f4f789976e6d81936496"
SYNC_TOPIC = "0x1c411e9a96e071241c2f21f7726b17ae89e3cab4c78be50e062b03a9fffbbad1"

# Uniswap V3
SWAP_V3_TOPIC = "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"

# WETH
DEPOSIT_TOPIC = "0xe1fffcc4923d04b559f4d29a8bfc6cda04eb5b0d3c460751c2402c5c5cc9109c"
WITHDRAWAL_TOPIC = "0x7fcf532c15f0a6db0bd6d0e038bea71d30d808c7d98cb3bf7268a95bf5081b65"

COMMON_EVENT_SIGNATURES: dict[str, str] = {
    TRANSFER_TOPIC: "Transfer",
    APPROVAL_TOPIC: "Approval",
    APPROVAL_FOR_ALL_TOPIC: "ApprovalForAll",
    TRANSFER_SINGLE_TOPIC: "TransferSingle",
    TRANSFER_BATCH_TOPIC: "TransferBatch",
    SWAP_V2_TOPIC: "Swap",
    MINT_V2_TOPIC: "Mint",
    BURN_V2_TOPIC: "Burn",
    SYNC_TOPIC: "Sync",
    SWAP_V3_TOPIC: "Swap",
    DEPOSIT_TOPIC: "Deposit",
    WITHDRAWAL_TOPIC: "Withdrawal",
}


class KnownSignatures:
    """事件签名表（只读）"""

    def __init__(self, signatures: Mapping[str, str] | None = None):
        source = COMMON_EVENT_SIGNATURES if signatures is None else signatures
        self._signatures: Mapping[str, str] = MappingProxyType(
            {topic.lower(): name for topic, name in source.items()}
        )

    def lookup(self, topic: str | None) -> str | None:
        """根据 topic0 获取事件名"""
        if not topic:
            return None
        return self._signatures.get(topic.lower())

    def __len__(self) -> int:
        return len(self._signatures)
