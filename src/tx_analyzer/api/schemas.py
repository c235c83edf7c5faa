from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..config import DEFAULT_NETWORK


class AnalyzeTxRequest(BaseModel):
    """交易分析请求"""
    network: str = DEFAULT_NETWORK
    tx_hash: str


class AnalyzeTxResponse(BaseModel):
    """交易分析响应"""
    tx_hash: str
    network: str
    tx_type: str
    protocol: str | None = None
    risk_score: float
    risk_reasons: list[str] = Field(default_factory=list)
    risk_summary: str = ""
    natural_language_explanation: str
    trace_id: str
    timings: dict[str, int] = Field(default_factory=dict)


class NetworkInfo(BaseModel):
    """网络信息"""
    network: str
    chain_id: int
    native_token: str
    explorer_url: str


class HealthResponse(BaseModel):
    """健康检查响应"""
    status: Literal["ok", "degraded"]
    version: str
    dependencies: dict[str, str] = Field(default_factory=dict)
