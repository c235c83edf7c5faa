from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .analyzer import (
    EventClassifier,
    ExplanationSynthesizer,
    KnownSignatures,
    ProtocolResolver,
    RiskScorer,
    TxAnalyzer,
    build_default_factors,
)
from .api import router
from .app_logging import configure_logging, get_logger
from .clients import ChatCompletionsClient
from .config import Settings, get_settings
from .integrations import (
    AccountHistoryProvider,
    ContractRegistry,
    EtherscanAccountHistory,
    EtherscanClient,
    TxFetcher,
)

logger = get_logger(__name__)

# 一次分析最多发出的浏览器请求数（失败交易查询 + 合约创建 + 首笔交易回退）
HISTORY_REQUESTS_PER_ANALYSIS = 3


def build_history_providers(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, AccountHistoryProvider]:
    """为配置了浏览器 API Key 的网络创建账户历史查询"""
    rate = settings.etherscan_rate_limit_per_sec
    if rate > 0 and HISTORY_REQUESTS_PER_ANALYSIS / rate >= settings.account_history_timeout_s:
        # 限流排队时间超过查询超时，账户历史因子将总被跳过
        logger.warning(
            "etherscan_rate_limit_exceeds_timeout",
            rate_limit_per_sec=rate,
            account_history_timeout_s=settings.account_history_timeout_s,
        )

    providers: dict[str, AccountHistoryProvider] = {}
    for network, config in settings.get_network_configs().items():
        if not config.explorer_api_key:
            continue
        client = EtherscanClient(
            base_url=config.explorer_base_url,
            api_key=config.explorer_api_key,
            rate_limit_per_sec=rate,
            timeout=settings.account_history_timeout_s,
            transport=transport,
        )
        providers[network] = EtherscanAccountHistory(client)
    return providers


def build_llm_client(settings: Settings) -> ChatCompletionsClient | None:
    if not settings.llm_base_url:
        return None
    return ChatCompletionsClient(
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        api_key=settings.llm_api_key,
    )


def build_analyzer(
    settings: Settings,
    llm_client: ChatCompletionsClient | None = None,
    history_providers: dict[str, AccountHistoryProvider] | None = None,
) -> TxAnalyzer:
    """组装分析流水线；签名表和合约注册表在此构建一次，之后只读"""
    signatures = KnownSignatures()
    registry = ContractRegistry.from_file()

    return TxAnalyzer(
        classifier=EventClassifier(signatures),
        resolver=ProtocolResolver(registry),
        scorer=RiskScorer(
            factors=build_default_factors(
                high_value_threshold_wei=settings.high_value_threshold_wei,
                new_contract_age_days=settings.new_contract_age_days,
            ),
            history_timeout_s=settings.account_history_timeout_s,
            max_score=settings.risk_score_cap,
        ),
        explainer=ExplanationSynthesizer(
            llm_client=llm_client,
            signatures=signatures,
            timeout_s=settings.llm_timeout_s,
        ),
        history_providers=history_providers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    settings: Settings = get_settings()

    configure_logging(settings.log_level, settings.log_format)
    logger.info("app_starting", env=settings.app_env, port=settings.port)

    llm_client = build_llm_client(settings)
    history_providers = build_history_providers(settings)

    app.state.settings = settings
    app.state.llm_client = llm_client
    app.state.fetcher = TxFetcher(settings)
    app.state.analyzer = build_analyzer(settings, llm_client, history_providers)

    logger.info(
        "app_started",
        llm_configured=llm_client is not None,
        history_networks=sorted(history_providers),
    )

    yield

    logger.info("app_stopped")


def create_app() -> FastAPI:
    """创建 FastAPI 应用"""
    app = FastAPI(
        title="AI Blockchain Transaction Analyzer",
        description="区块链交易分类、协议识别与风险评估服务",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": "Internal server error",
                    "type": "internal_error",
                }
            },
        )

    app.include_router(router)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "tx_analyzer.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.app_env == "local",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
