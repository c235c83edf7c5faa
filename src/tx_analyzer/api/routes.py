from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from .. import __version__
from ..analyzer import InvalidRecord, TxAnalyzer
from ..app_logging import Tracer, bind_context, clear_context, get_logger
from ..clients import ChatCompletionsClient
from ..config import Settings, get_settings
from ..integrations import FetchError, FetchTransaction
from .schemas import AnalyzeTxRequest, AnalyzeTxResponse, HealthResponse, NetworkInfo

logger = get_logger(__name__)
router = APIRouter()


def get_analyzer(request: Request) -> TxAnalyzer:
    """获取分析流水线实例"""
    return request.app.state.analyzer


def get_fetcher(request: Request) -> FetchTransaction:
    """获取交易获取器实例"""
    return request.app.state.fetcher


def get_llm_client(request: Request) -> ChatCompletionsClient | None:
    return getattr(request.app.state, "llm_client", None)


@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    return "OK"


@router.get("/healthz", response_model=HealthResponse)
async def health_check(
    llm_client: ChatCompletionsClient | None = Depends(get_llm_client),
) -> HealthResponse:
    """依赖健康检查；LLM 不可用只影响解释质量，状态为 degraded"""
    dependencies: dict[str, str] = {}

    if llm_client is not None:
        llm_ok = await llm_client.health_check()
        dependencies["llm"] = "ok" if llm_ok else "unhealthy"
    else:
        dependencies["llm"] = "not_configured"

    status = "degraded" if "unhealthy" in dependencies.values() else "ok"
    return HealthResponse(status=status, version=__version__, dependencies=dependencies)


@router.get("/v1/networks", response_model=list[NetworkInfo])
async def list_networks(settings: Settings = Depends(get_settings)) -> list[NetworkInfo]:
    """获取支持的网络列表"""
    return [
        NetworkInfo(
            network=config.network,
            chain_id=config.chain_id,
            native_token=config.native_token,
            explorer_url=config.explorer_base_url.removesuffix("/api"),
        )
        for config in settings.get_network_configs().values()
    ]


@router.post("/analyze_tx", response_model=AnalyzeTxResponse)
async def analyze_tx(
    req: AnalyzeTxRequest,
    analyzer: TxAnalyzer = Depends(get_analyzer),
    fetcher: FetchTransaction = Depends(get_fetcher),
) -> AnalyzeTxResponse:
    """获取交易并生成分析结果"""
    tracer = Tracer(network=req.network, tx_hash=req.tx_hash)
    bind_context(trace_id=tracer.trace_id, network=req.network, tx_hash=req.tx_hash)

    try:
        with tracer.step("fetch_transaction"):
            record = await fetcher.fetch(req.network, req.tx_hash)

        result = await analyzer.analyze(record, req.network, tracer=tracer)

    except FetchError as e:
        logger.warning("fetch_error", error=str(e), error_type=type(e).__name__)
        raise HTTPException(status_code=400, detail=f"Failed to fetch tx details: {e}") from e
    except InvalidRecord as e:
        logger.warning("invalid_record", error=str(e))
        raise HTTPException(status_code=400, detail=f"Invalid transaction record: {e}") from e
    finally:
        clear_context()

    return AnalyzeTxResponse(
        **result.model_dump(mode="json"),
        trace_id=tracer.trace_id,
        timings=tracer.get_timings(),
    )
