"""
Tests for the LLM analysis client: JSON extraction, result assembly and fallback.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import requests

from src.agents.assess.client import (
    MalformedResponseError,
    analyze_assessment,
    extract_json,
    request_completion,
)
from src.agents.assess.prompts import SYSTEM_PROMPT
from src.framework.regulations import SUPPORTED_REGULATIONS


def _completion_returning(payload):
    text = payload if isinstance(payload, str) else json.dumps(payload)
    calls = []

    def complete(system_prompt, user_prompt):
        calls.append((system_prompt, user_prompt))
        return text

    complete.calls = calls
    return complete


def _failing_completion(exc):
    def complete(system_prompt, user_prompt):
        raise exc
    return complete


class TestExtractJson:

    def test_plain_json(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_json_block(self):
        text = 'Here is the analysis:\n```json\n{"a": [1, 2]}\n```\nThanks.'

        assert extract_json(text) == {"a": [1, 2]}

    def test_fence_without_language_tag(self):
        assert extract_json('```\n{"b": true}\n```') == {"b": True}

    def test_invalid_fenced_block_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            extract_json("```json\n{not json}\n```")

    def test_json_block_after_other_fence(self):
        text = 'Example:\n```python\nprint("hi")\n```\nResult:\n```json\n{"c": 3}\n```'

        assert extract_json(text) == {"c": 3}

    def test_json_block_preferred_over_earlier_bare_fence(self):
        text = '```\n{"source": "bare"}\n```\n```json\n{"source": "labelled"}\n```'

        assert extract_json(text) == {"source": "labelled"}

    def test_prose_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            extract_json("I cannot help with that.")


class TestAnalyzeAssessment:
    """End-to-end analysis with an injected completion function."""

    def test_duplicates_are_merged(self, sample_responses, question_sections):
        complete = _completion_returning({
            "applicable_regulations": [
                {"code": "GDPR", "confidence": 0.8, "triggers": ["a"]},
                {"code": "GDPR", "confidence": 0.95, "triggers": ["b"]},
            ],
            "executive_summary": "Data-heavy SaaS business.",
            "risk_assessment": {"overall_risk_level": "high"},
        })

        result = analyze_assessment(sample_responses, question_sections, complete=complete)

        findings = result.llm_analysis.applicable_regulations
        assert len(findings) == 1
        assert findings[0].confidence == 0.95
        assert findings[0].triggers == ["a", "b"]
        assert result.applicable_regulations == ["GDPR"]
        assert result.supported_regulations == ["GDPR"]
        assert result.unsupported_regulations == []
        assert result.fallback_used is False

    def test_unsupported_codes_are_partitioned(self, sample_responses, question_sections):
        complete = _completion_returning({
            "applicable_regulations": [
                {"code": "NIS2", "confidence": 0.7},
                {"code": "GDPR", "confidence": 0.9},
            ],
        })

        result = analyze_assessment(sample_responses, question_sections, complete=complete)

        assert result.applicable_regulations == ["NIS2", "GDPR"]
        assert result.supported_regulations == ["GDPR"]
        assert result.unsupported_regulations == ["NIS2"]

    def test_missing_regulation_list_is_empty(self, sample_responses, question_sections):
        complete = _completion_returning({"executive_summary": "Nothing applies."})

        result = analyze_assessment(sample_responses, question_sections, complete=complete)

        assert result.applicable_regulations == []
        assert result.llm_analysis.fallback_used is False
        assert result.summary == "Nothing applies."

    def test_summary_and_risk_level_derived_from_nested_fields(self, sample_responses, question_sections):
        complete = _completion_returning({
            "applicable_regulations": [],
            "executive_summary": "Overview.",
            "risk_assessment": {"overall_risk_level": "medium"},
            "recommendations": ["Appoint a DPO"],
        })

        result = analyze_assessment(sample_responses, question_sections, complete=complete)

        assert result.summary == "Overview."
        assert result.risk_level == "medium"
        assert result.recommendations == ["Appoint a DPO"]

    def test_fenced_completion_is_accepted(self, sample_responses, question_sections):
        body = json.dumps({"applicable_regulations": [{"code": "CSRD", "confidence": 0.85}]})
        complete = _completion_returning(f"```json\n{body}\n```")

        result = analyze_assessment(sample_responses, question_sections, complete=complete)

        assert result.applicable_regulations == ["CSRD"]
        assert result.fallback_used is False

    def test_plain_dict_question_sections(self):
        sections = [{
            "section": "Data",
            "questions": [{"id": "gdpr-scope", "text": "Do you process personal data?", "type": "boolean"}],
        }]
        complete = _completion_returning({"applicable_regulations": [{"code": "GDPR", "confidence": 0.9}]})

        result = analyze_assessment({"gdpr-scope": {"value": True}}, sections, complete=complete)

        assert result.fallback_used is False
        assert result.applicable_regulations == ["GDPR"]
        assert "Question: Do you process personal data?" in complete.calls[0][1]

    def test_prompt_carries_system_prompt_and_context(self, sample_responses, question_sections):
        complete = _completion_returning({"applicable_regulations": []})

        analyze_assessment(sample_responses, question_sections, complete=complete)

        system_prompt, user_prompt = complete.calls[0]
        assert system_prompt == SYSTEM_PROMPT
        assert "Question: Do you process personal data of EU individuals?" in user_prompt
        assert "Answer: 320" in user_prompt

    @pytest.mark.parametrize("exc", [
        requests.ConnectionError("connection refused"),
        TimeoutError("timed out"),
        RuntimeError("rate limited"),
    ])
    def test_transport_failure_uses_fallback(self, sample_responses, question_sections, exc):
        result = analyze_assessment(
            sample_responses, question_sections, complete=_failing_completion(exc)
        )

        assert result.fallback_used is True
        assert result.applicable_regulations == ["GDPR", "CSRD"]
        assert result.risk_level == "medium"

    def test_malformed_completion_uses_fallback(self, sample_responses, question_sections):
        result = analyze_assessment(
            sample_responses, question_sections,
            complete=_completion_returning("Sorry, I can't produce JSON today."),
        )

        assert result.fallback_used is True

    def test_schema_violation_uses_fallback(self, sample_responses, question_sections):
        complete = _completion_returning({"applicable_regulations": [{"confidence": 0.9}]})

        result = analyze_assessment(sample_responses, question_sections, complete=complete)

        assert result.fallback_used is True

    def test_supported_subset_invariant(self, sample_responses, question_sections):
        complete = _completion_returning({
            "applicable_regulations": [
                {"code": code, "confidence": 0.6}
                for code in ["DSA", "GDPR", "CBAM", "AI_ACT", "DSA"]
            ],
        })

        result = analyze_assessment(sample_responses, question_sections, complete=complete)

        assert set(result.supported_regulations) <= set(SUPPORTED_REGULATIONS)
        assert set(result.supported_regulations).isdisjoint(result.unsupported_regulations)
        assert len(result.applicable_regulations) == len(set(result.applicable_regulations))
        assert set(result.applicable_regulations) == (
            set(result.supported_regulations) | set(result.unsupported_regulations)
        )


class TestRequestCompletion:

    @patch("src.agents.assess.client.OpenAI")
    def test_uses_configured_model_and_limits(self, mock_openai):
        client = MagicMock()
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content='{"ok": true}'))]
        )
        mock_openai.return_value = client

        raw = request_completion("system", "user")

        assert raw == '{"ok": true}'
        assert mock_openai.call_args.kwargs["max_retries"] == 0
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 4000
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}
        assert kwargs["messages"][1] == {"role": "user", "content": "user"}

    @patch("src.agents.assess.client.OpenAI")
    def test_empty_completion_raises(self, mock_openai):
        client = MagicMock()
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=None))]
        )
        mock_openai.return_value = client

        with pytest.raises(MalformedResponseError):
            request_completion("system", "user")

    @patch("src.agents.assess.client.OpenAI")
    def test_default_completion_failure_falls_back(self, mock_openai, sample_responses, question_sections):
        mock_openai.return_value.chat.completions.create.side_effect = RuntimeError("provider down")

        result = analyze_assessment(sample_responses, question_sections)

        assert result.fallback_used is True
