"""Rule-based regulation screening used when the LLM analysis is unavailable."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple

from src.framework.regulations import partition_regulations
from src.models.assessment import (
    AnalysisResult, ApplicableRegulation, LLMAnalysis, Priority, RiskLevel,
)

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Analysis based on rule-based fallback system"

FALLBACK_RECOMMENDATIONS = [
    "Complete detailed regulatory assessment",
    "Consult with compliance experts",
]


@dataclass(frozen=True)
class ScreeningRule:
    code: str
    name: str
    question_ids: Tuple[str, ...]
    confidence: float
    priority: str
    category: str
    trigger: str
    reasoning: str


SCREENING_RULES: Tuple[ScreeningRule, ...] = (
    ScreeningRule(
        code="GDPR",
        name="General Data Protection Regulation",
        question_ids=("gdpr-scope", "gdpr-special", "gdpr-transfers", "eprivacy-marketing"),
        confidence=0.9,
        priority=Priority.HIGH.value,
        category="data_protection",
        trigger="Processes personal data of EU individuals",
        reasoning="Rule-based analysis: Company processes personal data",
    ),
    ScreeningRule(
        code="CSRD",
        name="Corporate Sustainability Reporting Directive",
        question_ids=("csrd-thresholds", "csrd-non-eu", "csrd-consolidated"),
        confidence=0.85,
        priority=Priority.MEDIUM.value,
        category="sustainability",
        trigger="Meets CSRD reporting thresholds",
        reasoning="Rule-based analysis: Company meets CSRD criteria",
    ),
    ScreeningRule(
        code="AI_ACT",
        name="AI Act",
        question_ids=("aia-deploy", "aia-highrisk", "aia-transparency"),
        confidence=0.8,
        priority=Priority.MEDIUM.value,
        category="artificial_intelligence",
        trigger="Uses AI systems in EU market",
        reasoning="Rule-based analysis: Company uses AI systems",
    ),
)


def _answer_value(responses: Mapping[str, Any], question_id: str) -> Optional[Any]:
    entry = responses.get(question_id)
    if isinstance(entry, Mapping):
        return entry.get("value")
    return getattr(entry, "value", None)


def _risk_level(triggered: int) -> str:
    if triggered > 2:
        return RiskLevel.HIGH.value
    if triggered > 0:
        return RiskLevel.MEDIUM.value
    return RiskLevel.LOW.value


def screen_responses(responses: Optional[Mapping[str, Any]]) -> List[ApplicableRegulation]:
    """Evaluate the fixed screening rules against raw answers."""
    if not isinstance(responses, Mapping):
        responses = {}

    findings = []
    for rule in SCREENING_RULES:
        if any(_answer_value(responses, qid) for qid in rule.question_ids):
            findings.append(ApplicableRegulation(
                code=rule.code,
                name=rule.name,
                confidence=rule.confidence,
                triggers=[rule.trigger],
                reasoning=rule.reasoning,
                priority=rule.priority,
                category=rule.category,
            ))
    return findings


def fallback_analysis(responses: Optional[Mapping[str, Any]]) -> AnalysisResult:
    """Build an analysis result from the screening rules alone. Performs no I/O."""
    logger.info("Using fallback rule-based analysis")

    findings = screen_responses(responses)
    codes = [f.code for f in findings]
    risk_level = _risk_level(len(findings))

    llm_analysis = LLMAnalysis(
        applicable_regulations=findings,
        summary=FALLBACK_SUMMARY,
        risk_level=risk_level,
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        fallback_used=True,
    )

    supported, unsupported = partition_regulations(codes)

    return AnalysisResult(
        llm_analysis=llm_analysis,
        applicable_regulations=codes,
        supported_regulations=supported,
        unsupported_regulations=unsupported,
        summary=FALLBACK_SUMMARY,
        risk_level=risk_level,
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        processed_at=datetime.now(timezone.utc),
    )
