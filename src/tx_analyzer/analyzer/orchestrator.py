from __future__ import annotations

from collections.abc import Mapping

from ..app_logging import Tracer, get_logger
from ..integrations.account_history import AccountHistoryProvider
from .errors import InvalidRecord
from .event_classifier import EventClassifier
from .explainer import ExplanationSynthesizer
from .protocol_resolver import ProtocolResolver
from .risk_scorer import RiskScorer
from .schemas import AnalysisResult, TransactionRecord

logger = get_logger(__name__)

NO_RISK_SUMMARY = "no risk factors detected"


def summarize_risk(reasons: list[str]) -> str:
    """展示用的风险摘要（不作为风险原因保存）"""
    if not reasons:
        return NO_RISK_SUMMARY
    noun = "factor" if len(reasons) == 1 else "factors"
    return f"{len(reasons)} risk {noun} detected"


class TxAnalyzer:
    """交易分析流水线：分类 → 协议识别 → 风险评分 → 解释生成"""

    def __init__(
        self,
        classifier: EventClassifier,
        resolver: ProtocolResolver,
        scorer: RiskScorer,
        explainer: ExplanationSynthesizer,
        history_providers: Mapping[str, AccountHistoryProvider] | None = None,
    ):
        self.classifier = classifier
        self.resolver = resolver
        self.scorer = scorer
        self.explainer = explainer
        self.history_providers = dict(history_providers or {})

    @staticmethod
    def validate(record: TransactionRecord, network: str) -> None:
        """检查交易记录完整性，不合法时抛出 InvalidRecord"""
        if not network or not network.strip():
            raise InvalidRecord("network is required")
        if not record.hash or not record.hash.strip():
            raise InvalidRecord("transaction hash is missing")
        if not record.from_address or not record.from_address.strip():
            raise InvalidRecord("from address is missing")
        if record.value < 0:
            raise InvalidRecord(f"value must be non-negative, got {record.value}")
        if record.gas_used < 0:
            raise InvalidRecord(f"gas_used must be non-negative, got {record.gas_used}")

    async def analyze(
        self,
        record: TransactionRecord,
        network: str,
        tracer: Tracer | None = None,
    ) -> AnalysisResult:
        if tracer is None:
            tracer = Tracer(network=network, tx_hash=record.hash)

        with tracer.step("validate_record"):
            self.validate(record, network)

        with tracer.step("classify") as step:
            tx_type = self.classifier.classify(record)
            step.set_output({"tx_type": tx_type.value, "logs_count": len(record.logs)})

        with tracer.step("resolve_protocol") as step:
            protocol = self.resolver.resolve(record)
            step.set_output({"protocol": protocol})

        with tracer.step("account_history") as step:
            history = self.history_providers.get(network)
            context = await self.scorer.gather_context(record, history)
            if history is None:
                step.mark_skipped("provider_not_configured")
            step.set_output(context.model_dump())

        with tracer.step("score_risk") as step:
            risk_score, risk_reasons = self.scorer.score(record, context)
            step.set_output({"risk_score": risk_score, "risk_reasons": risk_reasons})

        with tracer.step("explain") as step:
            explanation = await self.explainer.explain(record, tx_type, protocol, risk_score, risk_reasons)
            step.set_output({"chars": len(explanation)})

        result = AnalysisResult(
            tx_hash=record.hash,
            network=network,
            tx_type=tx_type,
            protocol=protocol,
            risk_score=risk_score,
            risk_reasons=risk_reasons,
            risk_summary=summarize_risk(risk_reasons),
            natural_language_explanation=explanation,
        )

        logger.info(
            "analysis_completed",
            network=network,
            tx_hash=record.hash,
            tx_type=tx_type.value,
            protocol=protocol,
            risk_score=risk_score,
            risk_count=len(risk_reasons),
        )
        return result
