"""
合约注册表

已知合约地址 → 协议信息，启动时从 data/known_contracts.json 加载一次，之后只读。
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ..app_logging import get_logger

logger = get_logger(__name__)

# 数据目录
DATA_DIR = Path(__file__).parent.parent / "data"
CONTRACTS_FILE = DATA_DIR / "known_contracts.json"


def normalize_address(address: str | None) -> str:
    """地址规范化：去空白并转小写"""
    return (address or "").strip().lower()


@dataclass(frozen=True)
class ContractInfo:
    """合约信息"""
    address: str
    protocol: str
    name: str = "Unknown"
    type: str = "unknown"
    website: str | None = None


class ContractRegistry:
    """合约注册表 - 识别知名合约所属协议"""

    def __init__(self, contracts: Mapping[str, ContractInfo] | None = None):
        entries = {normalize_address(addr): info for addr, info in (contracts or {}).items()}
        self._contracts: Mapping[str, ContractInfo] = MappingProxyType(entries)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> ContractRegistry:
        """从 {address: {protocol, name, type, website}} 结构构建"""
        contracts: dict[str, ContractInfo] = {}
        for addr, info in data.items():
            address = normalize_address(addr)
            contracts[address] = ContractInfo(
                address=address,
                protocol=info.get("protocol", "Unknown"),
                name=info.get("name", "Unknown"),
                type=info.get("type", "unknown"),
                website=info.get("website"),
            )
        return cls(contracts)

    @classmethod
    def from_file(cls, path: Path = CONTRACTS_FILE) -> ContractRegistry:
        """加载知名合约数据，文件缺失或损坏时返回空注册表"""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("contract_registry_load_error", path=str(path), error=str(e))
            return cls()

        registry = cls.from_mapping(data)
        logger.info("contract_registry_loaded", count=len(registry))
        return registry

    def identify_contract(self, address: str | None) -> ContractInfo | None:
        """识别合约，未知地址返回 None"""
        if not address:
            return None
        return self._contracts.get(normalize_address(address))

    def get_protocol_name(self, address: str | None) -> str | None:
        """获取协议名称"""
        info = self.identify_contract(address)
        return info.protocol if info else None

    def __len__(self) -> int:
        return len(self._contracts)
