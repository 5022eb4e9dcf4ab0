import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from openai import OpenAI

from src.config.settings import settings
from src.framework.regulations import partition_regulations
from src.agents.assess.dedupe import deduplicate_regulations
from src.agents.assess.fallback import fallback_analysis
from src.agents.assess.prompts import (
    SYSTEM_PROMPT,
    build_analysis_prompt,
    build_assessment_context,
)
from src.models.assessment import AnalysisResult, LLMAnalysis, QuestionSection

logger = logging.getLogger(__name__)

# (system_prompt, user_prompt) -> raw completion text
CompletionFn = Callable[[str, str], str]

_JSON_FENCE = re.compile(r"```json[ \t]*\n(.*?)\n?[ \t]*```", re.DOTALL)
_BARE_FENCE = re.compile(r"```[ \t]*\n(.*?)\n?[ \t]*```", re.DOTALL)


class MalformedResponseError(ValueError):
    """The completion did not contain parseable JSON."""


def request_completion(system_prompt: str, user_prompt: str) -> str:
    client = OpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )

    response = client.chat.completions.create(
        model=settings.openai_model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=settings.analysis_temperature,
        max_tokens=settings.analysis_max_tokens,
    )

    raw = response.choices[0].message.content
    if not raw:
        raise MalformedResponseError("Empty completion from LLM")

    logger.debug("Raw LLM response: %s", raw)
    return raw


def extract_json(text: str) -> Any:
    """Parse JSON from a completion, preferring a ```json block, then a bare fence, then the raw text."""
    for pattern in (_JSON_FENCE, _BARE_FENCE):
        match = pattern.search(text)
        if not match:
            continue
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.debug("Fenced block is not valid JSON, trying next candidate")

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Invalid JSON response from LLM: {e}") from e


def parse_analysis(text: str) -> LLMAnalysis:
    return LLMAnalysis.model_validate(extract_json(text))


def build_analysis_result(analysis: LLMAnalysis) -> AnalysisResult:
    """Deduplicate findings and classify their codes against the supported list."""
    regulations = deduplicate_regulations(analysis.applicable_regulations)
    analysis = analysis.model_copy(update={"applicable_regulations": regulations})

    codes = [r.code for r in regulations]
    supported, unsupported = partition_regulations(codes)

    risk_level = analysis.risk_level
    if not risk_level and analysis.risk_assessment:
        risk_level = analysis.risk_assessment.get("overall_risk_level")

    return AnalysisResult(
        llm_analysis=analysis,
        applicable_regulations=codes,
        supported_regulations=supported,
        unsupported_regulations=unsupported,
        summary=analysis.summary or analysis.executive_summary,
        risk_level=risk_level,
        recommendations=analysis.recommendations or [],
        processed_at=datetime.now(timezone.utc),
    )


def analyze_assessment(
    responses: Mapping[str, Dict[str, Any]],
    questions: Iterable[Union[QuestionSection, Mapping[str, Any]]],
    complete: Optional[CompletionFn] = None,
) -> AnalysisResult:
    """Determine applicable EU regulations for a completed assessment.

    Any failure on the LLM path (transport, provider, malformed or
    schema-violating output) is logged and answered by the rule-based
    fallback, so callers always receive an AnalysisResult.
    """
    complete = complete or request_completion

    try:
        logger.info("Starting LLM analysis of %d assessment responses", len(responses or {}))

        context = build_assessment_context(responses, questions)
        prompt = build_analysis_prompt(context)

        raw = complete(SYSTEM_PROMPT, prompt)
        result = build_analysis_result(parse_analysis(raw))

        logger.info(
            "LLM analysis complete: applicable=%s, supported=%s, unsupported=%s",
            result.applicable_regulations,
            result.supported_regulations,
            result.unsupported_regulations,
        )
        return result

    except Exception as e:
        logger.error(f"LLM analysis failed, falling back to rule-based analysis: {e}")
        return fallback_analysis(responses)


if __name__ == "__main__":
    import sys

    from src.framework.questions import QUESTION_SECTIONS

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    with open(sys.argv[1]) as f:
        responses = json.load(f)

    result = analyze_assessment(responses, QUESTION_SECTIONS)
    print(result.model_dump_json(indent=2))
