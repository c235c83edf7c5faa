from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NETWORK = "ethereum-mainnet"


class NetworkConfig:
    """网络配置"""

    def __init__(
        self,
        network: str,
        chain_id: int,
        rpc_url: str,
        explorer_base_url: str,
        explorer_api_key: str = "",
        native_token: str = "ETH",
    ):
        self.network = network
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self.explorer_base_url = explorer_base_url
        self.explorer_api_key = explorer_api_key
        self.native_token = native_token


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    # 基础配置
    app_env: str = Field(default="local", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")
    port: int = Field(default=8080, alias="PORT")

    # 链 RPC
    eth_rpc_url: str = Field(default="https://eth.llamarpc.com", alias="ETH_RPC_URL")
    bsc_rpc_url: str = Field(default="https://bsc-dataseed.binance.org", alias="BSC_RPC_URL")
    polygon_rpc_url: str = Field(default="https://polygon-rpc.com", alias="POLYGON_RPC_URL")
    arbitrum_rpc_url: str = Field(default="https://arb1.arbitrum.io/rpc", alias="ARBITRUM_RPC_URL")
    optimism_rpc_url: str = Field(default="https://mainnet.optimism.io", alias="OPTIMISM_RPC_URL")
    rpc_timeout_s: float = Field(default=30.0, alias="RPC_TIMEOUT_S")

    # Etherscan API Keys（账户历史）
    etherscan_eth_api_key: str = Field(default="", alias="ETHERSCAN_ETH_API_KEY")
    etherscan_bsc_api_key: str = Field(default="", alias="ETHERSCAN_BSC_API_KEY")
    etherscan_polygon_api_key: str = Field(default="", alias="ETHERSCAN_POLYGON_API_KEY")
    etherscan_arbitrum_api_key: str = Field(default="", alias="ETHERSCAN_ARBITRUM_API_KEY")
    etherscan_optimism_api_key: str = Field(default="", alias="ETHERSCAN_OPTIMISM_API_KEY")
    # 免费 API Key 为每秒 5 次
    etherscan_rate_limit_per_sec: float = Field(default=5.0, alias="ETHERSCAN_RATE_LIMIT_PER_SEC")
    account_history_timeout_s: float = Field(default=10.0, alias="ACCOUNT_HISTORY_TIMEOUT_S")

    # LLM 服务（base_url 为空时总是使用模板解释）
    llm_base_url: str = Field(default="", alias="LLM_BASE_URL")
    llm_model: str = Field(default="gpt-4o-mini", alias="LLM_MODEL")
    llm_api_key: str = Field(default="", alias="LLM_API_KEY")
    llm_timeout_s: float = Field(default=15.0, alias="LLM_TIMEOUT_S")

    # 风险评分
    high_value_threshold_wei: int = Field(default=10 * 10**18, alias="HIGH_VALUE_THRESHOLD_WEI")
    new_contract_age_days: int = Field(default=30, alias="NEW_CONTRACT_AGE_DAYS")
    risk_score_cap: float | None = Field(default=None, alias="RISK_SCORE_CAP")

    def get_network_configs(self) -> dict[str, NetworkConfig]:
        """获取所有网络配置"""
        return {
            "ethereum-mainnet": NetworkConfig(
                network="ethereum-mainnet",
                chain_id=1,
                rpc_url=self.eth_rpc_url,
                explorer_base_url="https://api.etherscan.io/api",
                explorer_api_key=self.etherscan_eth_api_key,
                native_token="ETH",
            ),
            "bsc-mainnet": NetworkConfig(
                network="bsc-mainnet",
                chain_id=56,
                rpc_url=self.bsc_rpc_url,
                explorer_base_url="https://api.bscscan.com/api",
                explorer_api_key=self.etherscan_bsc_api_key,
                native_token="BNB",
            ),
            "polygon-mainnet": NetworkConfig(
                network="polygon-mainnet",
                chain_id=137,
                rpc_url=self.polygon_rpc_url,
                explorer_base_url="https://api.polygonscan.com/api",
                explorer_api_key=self.etherscan_polygon_api_key,
                native_token="MATIC",
            ),
            "arbitrum-mainnet": NetworkConfig(
                network="arbitrum-mainnet",
                chain_id=42161,
                rpc_url=self.arbitrum_rpc_url,
                explorer_base_url="https://api.arbiscan.io/api",
                explorer_api_key=self.etherscan_arbitrum_api_key,
                native_token="ETH",
            ),
            "optimism-mainnet": NetworkConfig(
                network="optimism-mainnet",
                chain_id=10,
                rpc_url=self.optimism_rpc_url,
                explorer_base_url="https://api-optimistic.etherscan.io/api",
                explorer_api_key=self.etherscan_optimism_api_key,
                native_token="ETH",
            ),
        }


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
