"""Relay between the chat endpoints and the retrieval-augmented knowledge service."""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

import requests

from src.config.settings import settings
from src.database.client import SupabaseClient
from src.models.assessment import ChatMessageCreate, ChatRole

logger = logging.getLogger(__name__)

RAG_UNAVAILABLE_MESSAGE = (
    "I'm sorry, I'm having trouble connecting to my knowledge base right now. "
    "Please try again in a moment."
)


def build_company_context(company: Optional[Dict[str, Any]]) -> str:
    if not company:
        return ""

    return (
        f"Company: {company.get('name')}, "
        f"Sector: {company.get('sector') or 'Not specified'}, "
        f"Size: {company.get('employees_estimate') or 'Not specified'} employees"
    )


def query_knowledge_base(question: str, company_context: str = "") -> str:
    """Ask the RAG service a question and return its answer text."""
    response = requests.post(
        f"{settings.rag_service_url.rstrip('/')}/query",
        json={"question": question, "company_context": company_context},
        timeout=settings.rag_timeout_seconds,
    )
    response.raise_for_status()

    answer = response.json().get("answer")
    if not answer:
        raise ValueError("RAG service returned no answer")
    return answer


def send_chat_message(
    db: SupabaseClient,
    session_id: UUID,
    user_id: UUID,
    message: str,
) -> Dict[str, Any]:
    """Store the user's message, get an answer from the knowledge base and store that too.

    When the knowledge base is unreachable an apology is stored as the
    assistant reply and the result carries an ``error`` field.
    """
    user_message = db.create_chat_message(ChatMessageCreate(
        session_id=session_id,
        user_id=user_id,
        role=ChatRole.USER,
        content=message,
    ))

    user = db.get_user_with_company(user_id)
    company_context = build_company_context((user or {}).get("companies"))

    try:
        answer = query_knowledge_base(message, company_context)
    except Exception as e:
        logger.error(f"RAG service error for session {session_id}: {e}")
        assistant_message = db.create_chat_message(ChatMessageCreate(
            session_id=session_id,
            role=ChatRole.ASSISTANT,
            content=RAG_UNAVAILABLE_MESSAGE,
        ))
        return {
            "userMessage": user_message,
            "assistantMessage": assistant_message,
            "error": "RAG service unavailable",
        }

    assistant_message = db.create_chat_message(ChatMessageCreate(
        session_id=session_id,
        role=ChatRole.ASSISTANT,
        content=answer,
    ))
    db.touch_chat_session(session_id)

    return {
        "userMessage": user_message,
        "assistantMessage": assistant_message,
    }
