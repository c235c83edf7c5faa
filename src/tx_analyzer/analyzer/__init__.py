from .errors import InvalidRecord
from .event_classifier import EventClassifier
from .explainer import ExplanationSynthesizer
from .orchestrator import TxAnalyzer
from .protocol_resolver import ProtocolResolver
from .risk_scorer import RiskFactor, RiskScorer, build_default_factors
from .schemas import (
    AccountContext,
    AnalysisResult,
    LogEntry,
    TransactionRecord,
    TxType,
)
from .signatures import KnownSignatures

__all__ = [
    "TxAnalyzer",
    "EventClassifier",
    "ProtocolResolver",
    "RiskScorer",
    "RiskFactor",
    "build_default_factors",
    "ExplanationSynthesizer",
    "KnownSignatures",
    "InvalidRecord",
    # 数据模型
    "TransactionRecord",
    "LogEntry",
    "AccountContext",
    "AnalysisResult",
    "TxType",
]
