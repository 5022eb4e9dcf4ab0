"""
Tests for the chat relay to the knowledge service.
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
import requests

from src.agents.chat.client import (
    RAG_UNAVAILABLE_MESSAGE,
    build_company_context,
    query_knowledge_base,
    send_chat_message,
)


def _rag_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


class TestBuildCompanyContext:

    def test_no_company(self):
        assert build_company_context(None) == ""

    def test_missing_fields_are_marked(self):
        context = build_company_context({"name": "Acme GmbH"})

        assert context == "Company: Acme GmbH, Sector: Not specified, Size: Not specified employees"

    def test_full_profile(self):
        context = build_company_context({"name": "Acme", "sector": "energy", "employees_estimate": 250})

        assert "Sector: energy" in context
        assert "Size: 250 employees" in context


class TestQueryKnowledgeBase:

    @patch("src.agents.chat.client.requests.post")
    def test_returns_answer(self, mock_post):
        mock_post.return_value = _rag_response({"answer": "GDPR applies."})

        assert query_knowledge_base("Does GDPR apply?", "Company: Acme") == "GDPR applies."

        url = mock_post.call_args.args[0]
        assert url == "http://localhost:8001/query"
        assert mock_post.call_args.kwargs["json"] == {
            "question": "Does GDPR apply?",
            "company_context": "Company: Acme",
        }
        assert mock_post.call_args.kwargs["timeout"] == 30.0

    @patch("src.agents.chat.client.requests.post")
    def test_empty_answer_raises(self, mock_post):
        mock_post.return_value = _rag_response({"sources": []})

        with pytest.raises(ValueError):
            query_knowledge_base("anything")

    @patch("src.agents.chat.client.requests.post")
    def test_http_error_raises(self, mock_post):
        mock_post.return_value = _rag_response({}, status_code=503)

        with pytest.raises(requests.HTTPError):
            query_knowledge_base("anything")


class TestSendChatMessage:

    @patch("src.agents.chat.client.requests.post")
    def test_stores_both_messages(self, mock_post, fake_db):
        mock_post.return_value = _rag_response({"answer": "You need a DPO."})
        user_id = fake_db.add_user(company={"name": "Acme", "sector": "health"})
        session = fake_db.create_chat_session(user_id)

        result = send_chat_message(fake_db, uuid.UUID(session["id"]), uuid.UUID(user_id), "Do I need a DPO?")

        assert result["userMessage"]["content"] == "Do I need a DPO?"
        assert result["userMessage"]["role"] == "user"
        assert result["assistantMessage"]["content"] == "You need a DPO."
        assert result["assistantMessage"]["role"] == "assistant"
        assert "error" not in result
        assert len(fake_db.get_chat_messages(session["id"])) == 2
        assert "Company: Acme" in mock_post.call_args.kwargs["json"]["company_context"]

    @patch("src.agents.chat.client.requests.post")
    def test_unavailable_service_stores_apology(self, mock_post, fake_db):
        mock_post.side_effect = requests.ConnectionError("refused")
        user_id = fake_db.add_user()
        session = fake_db.create_chat_session(user_id)

        result = send_chat_message(fake_db, uuid.UUID(session["id"]), uuid.UUID(user_id), "Hello?")

        assert result["error"] == "RAG service unavailable"
        assert result["assistantMessage"]["content"] == RAG_UNAVAILABLE_MESSAGE
        assert len(fake_db.get_chat_messages(session["id"])) == 2
