"""Shared fixtures for the regulatory assessment tests."""

import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

# Required settings must exist before any src module is imported
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ENV", "testing")

from src.models.assessment import (  # noqa: E402
    ApplicableRegulation, Question, QuestionSection,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FakeSupabaseClient:
    """In-memory stand-in for SupabaseClient with the same method surface."""

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.companies: Dict[str, Dict[str, Any]] = {}
        self.auth_emails: Dict[str, str] = {}
        self.assessments: Dict[str, Dict[str, Any]] = {}
        self.analyses: List[Dict[str, Any]] = []
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.messages: List[Dict[str, Any]] = []

    # Users & Companies

    def add_user(self, company: Optional[Dict[str, Any]] = None, email: str = "owner@example.com") -> str:
        user_id = str(uuid.uuid4())
        company_id = None
        if company:
            company_id = str(uuid.uuid4())
            self.companies[company_id] = {"id": company_id, **company}
        self.users[user_id] = {"id": user_id, "company_id": company_id}
        self.auth_emails[user_id] = email
        return user_id

    def get_user(self, user_id):
        user = self.users.get(str(user_id))
        return {"id": user["id"], "company_id": user.get("company_id")} if user else None

    def get_user_with_company(self, user_id):
        user = self.users.get(str(user_id))
        if not user:
            return None
        return {**user, "companies": self.companies.get(user.get("company_id"))}

    def get_auth_user_email(self, user_id):
        return self.auth_emails.get(str(user_id))

    def upsert_user_profile(self, profile):
        data = profile.model_dump(mode="json")
        self.users[data["id"]] = {**self.users.get(data["id"], {}), **data}
        return self.users[data["id"]]

    def get_company_by_name(self, name):
        for company in self.companies.values():
            if company["name"] == name:
                return {"id": company["id"]}
        return None

    def create_company(self, company):
        company_id = str(uuid.uuid4())
        self.companies[company_id] = {"id": company_id, **company.model_dump(mode="json")}
        return self.companies[company_id]

    # Assessments

    def create_assessment(self, assessment):
        assessment_id = str(uuid.uuid4())
        row = {
            "id": assessment_id,
            **assessment.model_dump(mode="json"),
            "created_at": _now(),
            "updated_at": _now(),
            "completed_at": None,
        }
        self.assessments[assessment_id] = row
        return row

    def add_assessment(self, user_id: str, responses=None, status: str = "in_progress") -> str:
        assessment_id = str(uuid.uuid4())
        self.assessments[assessment_id] = {
            "id": assessment_id,
            "user_id": user_id,
            "company_id": None,
            "status": status,
            "responses": responses or {},
            "created_at": _now(),
            "updated_at": _now(),
            "completed_at": None,
        }
        return assessment_id

    def get_assessment(self, assessment_id):
        return self.assessments.get(str(assessment_id))

    def get_latest_assessment(self, user_id):
        rows = [a for a in self.assessments.values() if a["user_id"] == str(user_id)]
        return rows[-1] if rows else None

    def update_assessment_responses(self, assessment_id, responses):
        row = self.assessments[str(assessment_id)]
        row["responses"] = responses
        row["updated_at"] = _now()
        return row

    def complete_assessment(self, assessment_id):
        row = self.assessments.get(str(assessment_id))
        if not row:
            raise ValueError(f"Assessment {assessment_id} not found")
        row["status"] = "completed"
        row["completed_at"] = _now()
        return row

    def create_assessment_analysis(self, analysis):
        row = {"id": str(uuid.uuid4()), **analysis.model_dump(mode="json"), "created_at": _now()}
        self.analyses.append(row)
        return row

    def get_latest_assessment_analysis(self, assessment_id):
        rows = [a for a in self.analyses if a["assessment_id"] == str(assessment_id)]
        return rows[-1] if rows else None

    # Chat

    def create_chat_session(self, user_id, title=None):
        session_id = str(uuid.uuid4())
        self.sessions[session_id] = {
            "id": session_id,
            "owner_user_id": str(user_id),
            "title": title or "New Chat",
            "created_at": _now(),
            "updated_at": _now(),
        }
        return self.sessions[session_id]

    def get_chat_session(self, session_id):
        return self.sessions.get(str(session_id))

    def get_chat_sessions(self, user_id):
        return [s for s in self.sessions.values() if s["owner_user_id"] == str(user_id)]

    def touch_chat_session(self, session_id):
        if str(session_id) in self.sessions:
            self.sessions[str(session_id)]["updated_at"] = _now()

    def delete_chat_session(self, session_id):
        self.sessions.pop(str(session_id), None)
        self.messages = [m for m in self.messages if m["session_id"] != str(session_id)]

    def create_chat_message(self, message):
        row = {"id": str(uuid.uuid4()), **message.model_dump(mode="json"), "created_at": _now()}
        self.messages.append(row)
        return row

    def get_chat_messages(self, session_id):
        return [m for m in self.messages if m["session_id"] == str(session_id)]


@pytest.fixture
def fake_db() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def question_sections() -> List[QuestionSection]:
    """Two small sections covering boolean, number and multi answers."""
    return [
        QuestionSection(
            section="Data Protection & Privacy",
            questions=[
                Question(id="gdpr-scope", text="Do you process personal data of EU individuals?", type="boolean"),
                Question(id="gdpr-transfers", text="Do you transfer data outside the EEA?", type="boolean"),
            ],
        ),
        QuestionSection(
            section="Company Profile",
            questions=[
                Question(id="company-employees", text="How many employees do you have?", type="number"),
                Question(id="company-sectors", text="Which sectors do you operate in?", type="multi"),
            ],
        ),
    ]


@pytest.fixture
def sample_responses() -> Dict[str, Dict[str, Any]]:
    return {
        "company-employees": {"value": 320, "answered_at": "2024-05-01T10:00:00Z"},
        "gdpr-scope": {"value": True, "answered_at": "2024-05-01T10:01:00Z"},
        "csrd-thresholds": {"value": True, "answered_at": "2024-05-01T10:02:00Z"},
    }


@pytest.fixture
def make_finding():
    def _make(code: str, **kwargs) -> ApplicableRegulation:
        return ApplicableRegulation(code=code, **kwargs)
    return _make
