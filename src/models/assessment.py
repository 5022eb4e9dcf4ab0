"""Data models for assessments, regulatory analysis, onboarding and chat."""

from datetime import datetime
from typing import Optional, Dict, List, Any, Union
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class AssessmentStatus(str, Enum):
    """Lifecycle of an initial assessment."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(str, Enum):
    """Compliance priority levels."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(str, Enum):
    """Overall regulatory risk levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ChatRole(str, Enum):
    """Author of a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


# Question bank

class Question(BaseModel):
    """A single self-assessment question."""
    id: str
    text: str
    type: str = "text"
    answer_type: Optional[str] = None
    help_text: Optional[str] = None


class QuestionSection(BaseModel):
    """An ordered group of questions shown together."""
    section: str
    questions: List[Question]


# Regulatory analysis

class ApplicableRegulation(BaseModel):
    """One regulation's applicability finding, as produced by the LLM or the fallback rules."""
    code: str
    name: Optional[str] = None
    confidence: float = 0.0
    triggers: List[str] = Field(default_factory=list)
    reasoning: Optional[str] = ""
    priority: Optional[str] = None
    category: Optional[str] = None
    key_obligations: List[str] = Field(default_factory=list)
    thresholds_met: Optional[Any] = None
    next_steps: List[str] = Field(default_factory=list)

    @field_validator("triggers", "key_obligations", "next_steps", mode="before")
    @classmethod
    def none_as_empty_list(cls, v):
        return [] if v is None else v

    class Config:
        extra = "allow"


class LLMAnalysis(BaseModel):
    """Validated shape of the model's JSON answer. Unknown fields pass through."""
    applicable_regulations: List[ApplicableRegulation] = Field(default_factory=list)
    regulatory_summary: Optional[Dict[str, Any]] = None
    risk_assessment: Optional[Dict[str, Any]] = None
    executive_summary: Optional[str] = None
    immediate_actions: List[Any] = Field(default_factory=list)
    recommendations: List[Any] = Field(default_factory=list)
    summary: Optional[str] = None
    risk_level: Optional[str] = None
    fallback_used: bool = False

    @field_validator("applicable_regulations", "immediate_actions", "recommendations", mode="before")
    @classmethod
    def none_as_empty_list(cls, v):
        return [] if v is None else v

    class Config:
        extra = "allow"


class AnalysisResult(BaseModel):
    """Outcome of one assessment submission, identical in shape for the LLM and fallback paths."""
    llm_analysis: LLMAnalysis
    applicable_regulations: List[str]
    supported_regulations: List[str]
    unsupported_regulations: List[str]
    summary: Optional[str] = None
    risk_level: Optional[str] = None
    recommendations: List[Any] = Field(default_factory=list)
    processed_at: datetime

    @property
    def fallback_used(self) -> bool:
        return self.llm_analysis.fallback_used


# Assessments (initial_assessments table)

class AnswerRecord(BaseModel):
    """Stored answer for a single question."""
    value: Union[bool, int, float, str, List[str], None] = None
    answered_at: datetime


class ResponseUpdate(BaseModel):
    """Payload for saving one answer."""
    question_id: str = Field(..., min_length=1)
    value: Union[bool, int, float, str, List[str]]


class AssessmentCreate(BaseModel):
    """Model for creating a new assessment."""
    user_id: UUID
    company_id: Optional[UUID] = None
    status: AssessmentStatus = AssessmentStatus.IN_PROGRESS
    responses: Dict[str, Any] = Field(default_factory=dict)


class AssessmentAnalysisCreate(BaseModel):
    """Model for persisting an analysis result against an assessment."""
    assessment_id: UUID
    result: Dict[str, Any]
    applicable_regulations: List[str]
    supported_regulations: List[str]
    fallback_used: bool
    model_used: Optional[str] = None
    prompt_version: Optional[str] = None


# Onboarding (companies / users tables)

def parse_employee_estimate(employees_estimate: Optional[str]) -> Optional[int]:
    """Turn a free-form headcount like "1-10", "50+" or "100" into its lower bound."""
    if not employees_estimate or not isinstance(employees_estimate, str):
        return None

    cleaned = employees_estimate.strip().lower()
    if "-" in cleaned:
        cleaned = cleaned.split("-")[0]
    cleaned = cleaned.replace("+", "").replace(",", "").strip()

    try:
        return int(cleaned)
    except ValueError:
        return None


class BasicOnboardingRequest(BaseModel):
    """Payload of the basic onboarding form."""
    user_id: UUID
    full_name: str = Field(..., min_length=1)
    company_name: str = Field(..., min_length=1)
    role: Optional[str] = None
    sector: Optional[str] = None
    employees_estimate: Optional[str] = None


class CompanyCreate(BaseModel):
    """Model for creating a company."""
    name: str
    sector: Optional[str] = None
    employees_estimate: Optional[int] = None


class UserProfileUpsert(BaseModel):
    """Model for upserting a user profile after onboarding."""
    id: UUID
    email: str
    full_name: str
    company_id: UUID
    company_role: str = "owner"
    onboarding_basic_completed_at: datetime


# Chat (chat_sessions / chat_messages tables)

class ChatSessionCreate(BaseModel):
    """Model for creating a chat session."""
    user_id: UUID
    title: Optional[str] = None


class ChatMessageRequest(BaseModel):
    """Payload for sending a chat message."""
    session_id: UUID
    user_id: UUID
    message: str = Field(..., min_length=1)


class ChatMessageCreate(BaseModel):
    """Model for storing a chat message."""
    session_id: UUID
    user_id: Optional[UUID] = None
    role: ChatRole
    content: str
