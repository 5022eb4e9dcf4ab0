"""Submit-and-analyze pipeline: completes an assessment, analyzes it and stores the result."""

import logging
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from src.config.settings import settings
from src.database.client import SupabaseClient, get_supabase_client
from src.agents.assess.client import CompletionFn, analyze_assessment
from src.agents.assess.prompts import PROMPT_VERSION
from src.framework.questions import QUESTION_SECTIONS
from src.models.assessment import AnalysisResult, AssessmentAnalysisCreate

logger = logging.getLogger(__name__)


def submit_and_analyze(
    assessment_id: UUID,
    db: Optional[SupabaseClient] = None,
    complete: Optional[CompletionFn] = None,
) -> Tuple[Dict[str, Any], AnalysisResult]:
    db = db or get_supabase_client()

    assessment = db.complete_assessment(assessment_id)
    responses = assessment.get("responses") or {}

    logger.info(f"Assessment {assessment_id} completed with {len(responses)} responses, starting analysis")

    result = analyze_assessment(responses, QUESTION_SECTIONS, complete=complete)

    if result.fallback_used:
        logger.warning(f"Assessment {assessment_id} analyzed with rule-based fallback")

    db.create_assessment_analysis(AssessmentAnalysisCreate(
        assessment_id=assessment_id,
        result=result.model_dump(mode="json"),
        applicable_regulations=result.applicable_regulations,
        supported_regulations=result.supported_regulations,
        fallback_used=result.fallback_used,
        model_used=None if result.fallback_used else settings.openai_model,
        prompt_version=None if result.fallback_used else PROMPT_VERSION,
    ))

    logger.info(
        f"Stored analysis for assessment {assessment_id}: "
        f"{len(result.applicable_regulations)} regulations, risk={result.risk_level}"
    )

    return assessment, result
