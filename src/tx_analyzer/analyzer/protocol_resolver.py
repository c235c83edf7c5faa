from __future__ import annotations

from ..integrations.contract_registry import ContractInfo, ContractRegistry
from .schemas import TransactionRecord


class ProtocolResolver:
    """协议归属识别

    优先使用交易的 to 地址；合约创建交易（无 to）使用第一条日志的合约地址。
    """

    def __init__(self, registry: ContractRegistry):
        self.registry = registry

    def resolve(self, record: TransactionRecord) -> str | None:
        info = self.resolve_contract(record)
        return info.protocol if info else None

    def resolve_contract(self, record: TransactionRecord) -> ContractInfo | None:
        return self.registry.identify_contract(self._candidate_address(record))

    @staticmethod
    def _candidate_address(record: TransactionRecord) -> str | None:
        if record.to_address:
            return record.to_address
        if record.logs:
            return record.logs[0].address
        return None
