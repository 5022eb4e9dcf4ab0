import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

from pydantic import ValidationError

from src.framework.regulations import serialize_catalog
from src.models.assessment import QuestionSection

logger = logging.getLogger(__name__)


PROMPT_VERSION = "2024-06-eu-applicability-v2"

SYSTEM_PROMPT = "You are an expert EU regulatory compliance analyst. Provide accurate, detailed analysis in valid JSON format only."

CONTEXT_HEADER = "COMPANY ASSESSMENT RESPONSES:\n\n"

ANALYSIS_INSTRUCTIONS = """ANALYSIS INSTRUCTIONS:

1. THOROUGHNESS: Review ALL assessment responses systematically. Consider both direct and indirect regulatory triggers.

2. CONFIDENCE BUILDING: Use multiple data points to build confidence:
   - Company size and financial thresholds
   - Business activities and sector specifics
   - Geographic presence and operations
   - Technology usage and data processing
   - Product/service characteristics
   - Supply chain and business relationships

3. REGULATION CATEGORIES TO ANALYZE:
   - Data Protection & Privacy (GDPR, ePrivacy)
   - Sustainability & Environment (CSRD, EU Taxonomy, EU ETS, CBAM, WEEE, etc.)
   - Digital Technology & AI (AI Act, DSA, DMA, CRA)
   - Financial Services (MiFID II, PSD2, MiCA, Solvency II)
   - Cybersecurity & Infrastructure (NIS2, CRA)
   - Product Safety & Compliance (CE marking, Medical Device Regulation, etc.)
   - Chemicals & Substances (REACH, CLP)
   - Employment & Workers (Posted Workers, Whistleblower Protection)
   - Consumer Protection (Consumer Rights, Unfair Commercial Practices)
   - Energy & Environment (Energy Efficiency, Renewable Energy)
   - Trade & Customs (Union Customs Code, Dual-Use)
   - Transport & Mobility
   - And ALL other applicable EU regulations

4. CONFIDENCE SCORING:
   - 0.95-1.0: Clear regulatory trigger, meets all thresholds
   - 0.85-0.94: Strong indicators, likely applicable
   - 0.70-0.84: Moderate confidence, some uncertainty
   - 0.50-0.69: Possible applicability, needs further investigation
   - Below 0.50: Unlikely to apply

5. PRIORITY ASSESSMENT:
   - HIGH: Immediate compliance obligations, significant penalties
   - MEDIUM: Important compliance requirements, moderate timeline
   - LOW: Future or minor compliance obligations"""

RESPONSE_FORMAT = """REQUIRED JSON RESPONSE FORMAT:
{
  "applicable_regulations": [
    {
      "code": "REGULATION_CODE",
      "name": "Full Regulation Name",
      "confidence": 0.95,
      "triggers": ["Specific trigger from assessment", "Another trigger"],
      "reasoning": "Detailed explanation of why this regulation applies, referencing specific assessment responses",
      "priority": "high|medium|low",
      "category": "regulation_category",
      "key_obligations": ["Main compliance requirement 1", "Main compliance requirement 2"],
      "thresholds_met": ["Specific threshold analysis"],
      "next_steps": ["Immediate action required", "Assessment needed"]
    }
  ],
  "regulatory_summary": {
    "total_regulations": 0,
    "high_priority": 0,
    "medium_priority": 0,
    "low_priority": 0,
    "categories_affected": ["category1", "category2"]
  },
  "risk_assessment": {
    "overall_risk_level": "low|medium|high|critical",
    "compliance_complexity": "low|medium|high",
    "regulatory_burden": "light|moderate|heavy",
    "key_risk_areas": ["area1", "area2"]
  },
  "executive_summary": "2-3 sentence overview of the company's regulatory landscape and key compliance priorities",
  "immediate_actions": ["Most urgent compliance actions needed"],
  "recommendations": [
    {
      "priority": "high|medium|low",
      "action": "Specific recommendation",
      "regulation": "REGULATION_CODE",
      "timeline": "immediate|3-6 months|6-12 months"
    }
  ]
}"""

CRITICAL_REQUIREMENTS = """CRITICAL REQUIREMENTS:
- Include ALL applicable regulations, not just major ones
- Each regulation should appear ONLY ONCE in the applicable_regulations array
- If a regulation applies for multiple reasons, combine all triggers and reasoning into a single entry
- Provide detailed reasoning for each regulation
- Be specific about which assessment responses triggered each regulation
- Ensure confidence scores are realistic and well-justified
- Focus on actionable insights and next steps"""


def _format_answer(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _load_sections(questions: Iterable[Any]) -> List[QuestionSection]:
    """Accept QuestionSection models or plain ``{section, questions}`` records."""
    sections = []
    for raw in questions or []:
        try:
            sections.append(QuestionSection.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed question section: {e}")
    return sections


def build_assessment_context(
    responses: Mapping[str, Dict[str, Any]],
    questions: Iterable[Union[QuestionSection, Mapping[str, Any]]],
) -> str:
    """Render answered questions as a readable narrative, in the order of ``responses``.

    Answers whose question id is not in ``questions`` are skipped.
    """
    question_map = {}
    for section in _load_sections(questions):
        for q in section.questions:
            question_map[q.id] = (section.section, q)

    blocks = []
    for question_id, response_data in (responses or {}).items():
        if question_id not in question_map:
            continue

        section_name, question = question_map[question_id]
        value = response_data.get("value") if isinstance(response_data, Mapping) else response_data
        blocks.append(
            f"Section: {section_name}\n"
            f"Question: {question.text}\n"
            f"Answer: {_format_answer(value)}\n"
            f"Type: {question.type}\n\n"
        )

    return CONTEXT_HEADER + "".join(blocks)


def build_analysis_prompt(context: str) -> str:
    return f"""You are a senior EU regulatory compliance expert with deep knowledge of all European Union regulations, directives, and legal frameworks.

Analyze this company's comprehensive assessment responses to determine ALL applicable EU regulations. Be thorough and confident in your analysis.

ASSESSMENT CONTEXT:
{context}

COMPREHENSIVE EU REGULATION KNOWLEDGE BASE:
{serialize_catalog()}

{ANALYSIS_INSTRUCTIONS}

{RESPONSE_FORMAT}

{CRITICAL_REQUIREMENTS}

Analyze this company comprehensively now:"""
