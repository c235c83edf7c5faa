from .contract_registry import ContractInfo, ContractRegistry, normalize_address
from .etherscan_client import EtherscanClient, EtherscanError
from .account_history import AccountHistoryProvider, AccountHistoryUnavailable, EtherscanAccountHistory
from .rpc_client import FetchError, RPCClient, RPCError
from .tx_fetcher import (
    FetchTransaction,
    InvalidTxHash,
    TransactionNotFound,
    TxFetcher,
    UnsupportedNetwork,
    record_from_rpc,
)

__all__ = [
    "ContractInfo",
    "ContractRegistry",
    "normalize_address",
    "EtherscanClient",
    "EtherscanError",
    "AccountHistoryProvider",
    "AccountHistoryUnavailable",
    "EtherscanAccountHistory",
    "FetchError",
    "RPCClient",
    "RPCError",
    "FetchTransaction",
    "InvalidTxHash",
    "TransactionNotFound",
    "TxFetcher",
    "UnsupportedNetwork",
    "record_from_rpc",
]
