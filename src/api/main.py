"""
FastAPI application for the EU regulatory assessment service.
Provides REST API for onboarding, the self-assessment questionnaire,
regulation applicability analysis and the compliance chat assistant.
"""
import logging
import logging.config
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware

from src.config.settings import settings, get_log_config
from src.database.client import get_supabase_client, SupabaseClient
from src.framework.questions import QUESTION_SECTIONS, get_question_by_id
from src.framework.regulations import (
    REGULATIONS, SUPPORTED_REGULATIONS, get_regulations_by_category,
)
from src.models.assessment import (
    AnswerRecord, AssessmentCreate, AssessmentStatus, ResponseUpdate,
    BasicOnboardingRequest, CompanyCreate, UserProfileUpsert,
    ChatSessionCreate, ChatMessageRequest, QuestionSection,
    parse_employee_estimate,
)

# Configure logging
logging.config.dictConfig(get_log_config())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info(
        f"Starting Regulatory Assessment Service (model={settings.openai_model}, "
        f"supported regulations={', '.join(SUPPORTED_REGULATIONS)})"
    )
    yield
    logger.info("Shutting down Regulatory Assessment Service")


app = FastAPI(
    title="Regulatory Assessment Service",
    description="EU regulation applicability screening and compliance assistant",
    version="0.1.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


def _parse_uuid(value: str, label: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "Regulatory Assessment Service is running!",
        "status": "healthy",
        "environment": settings.env,
        "version": "0.1.0"
    }


@app.get("/health")
def health_check(client: SupabaseClient = Depends(get_supabase_client)):
    """Detailed health check with database connectivity."""
    try:
        result = client.client.table("initial_assessments").select("id").limit(1).execute()
        db_status = f"connected ({len(result.data)} row returned)"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        db_status = f"error: {str(e)[:100]}"

    return {
        "status": "ok",
        "service": "regulatory-assessment",
        "version": "0.1.0",
        "environment": settings.env,
        "database": db_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Reference data

@app.get("/api/questions", response_model=List[QuestionSection])
def get_questions():
    """Self-assessment question bank."""
    return QUESTION_SECTIONS


@app.get("/api/regulations")
def get_regulations(category: Optional[str] = None):
    """EU regulation catalog with the subset that has dedicated support."""
    regulations = get_regulations_by_category(category) if category else REGULATIONS
    return {
        "regulations": [r.model_dump() for r in regulations],
        "supported": list(SUPPORTED_REGULATIONS),
    }


# Onboarding endpoints

@app.post("/api/onboarding/basic")
def complete_basic_onboarding(
    request: BasicOnboardingRequest,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Attach the user to a company and mark basic onboarding as complete."""
    try:
        existing = client.get_company_by_name(request.company_name)
        if existing:
            company_id = existing["id"]
        else:
            company = client.create_company(CompanyCreate(
                name=request.company_name,
                sector=request.sector,
                employees_estimate=parse_employee_estimate(request.employees_estimate),
            ))
            company_id = company["id"]

        email = client.get_auth_user_email(request.user_id)
        if not email:
            raise HTTPException(status_code=500, detail="Failed to get user information")

        user = client.upsert_user_profile(UserProfileUpsert(
            id=request.user_id,
            email=email,
            full_name=request.full_name,
            company_id=company_id,
            company_role=request.role or "owner",
            onboarding_basic_completed_at=datetime.now(timezone.utc),
        ))

        return {
            "message": "Basic onboarding completed successfully",
            "user": {
                "id": user["id"],
                "fullName": user.get("full_name"),
                "companyId": user.get("company_id"),
                "companyRole": user.get("company_role"),
                "onboardingBasicCompleted": bool(user.get("onboarding_basic_completed_at")),
            },
            "company": {
                "id": company_id,
                "name": request.company_name,
                "sector": request.sector,
                "employeesEstimate": request.employees_estimate,
            },
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Onboarding failed for {request.user_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/api/onboarding/status/{user_id}")
def get_onboarding_status(
    user_id: str,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Get onboarding status and company profile for a user."""
    user_uuid = _parse_uuid(user_id, "user")

    try:
        user = client.get_user_with_company(user_uuid)
    except Exception as e:
        logger.error(f"Error fetching onboarding status: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    company = user.get("companies")
    return {
        "user": {
            "id": user["id"],
            "fullName": user.get("full_name"),
            "companyId": user.get("company_id"),
            "companyRole": user.get("company_role"),
            "onboardingBasicCompleted": bool(user.get("onboarding_basic_completed_at")),
        },
        "company": {
            "id": company.get("id"),
            "name": company.get("name"),
            "sector": company.get("sector"),
            "employeesEstimate": company.get("employees_estimate"),
        } if company else None,
    }


# Assessment endpoints

@app.get("/api/assessments/{user_id}")
def get_or_create_assessment(
    user_id: str,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Get the user's latest assessment, creating one if none exists."""
    user_uuid = _parse_uuid(user_id, "user")

    try:
        user = client.get_user(user_uuid)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        existing = client.get_latest_assessment(user_uuid)
        if existing:
            return existing

        return client.create_assessment(AssessmentCreate(
            user_id=user_uuid,
            company_id=user.get("company_id"),
        ))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching or creating assessment: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.put("/api/assessments/{assessment_id}/responses")
def save_response(
    assessment_id: str,
    update: ResponseUpdate,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Save one answer to an in-progress assessment."""
    assessment_uuid = _parse_uuid(assessment_id, "assessment")

    try:
        assessment = client.get_assessment(assessment_uuid)
        if not assessment:
            raise HTTPException(status_code=404, detail="Assessment not found")

        if assessment.get("status") == AssessmentStatus.COMPLETED.value:
            raise HTTPException(status_code=409, detail="Assessment is already completed")

        if not get_question_by_id(update.question_id):
            logger.warning(f"Response saved for unknown question id '{update.question_id}'")

        responses = dict(assessment.get("responses") or {})
        responses[update.question_id] = AnswerRecord(
            value=update.value,
            answered_at=datetime.now(timezone.utc),
        ).model_dump(mode="json")

        return client.update_assessment_responses(assessment_uuid, responses)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving response for assessment {assessment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.post("/api/assessments/{assessment_id}/submit")
def submit_assessment(
    assessment_id: str,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Complete an assessment and determine which EU regulations apply."""
    from src.agents.assess.pipeline import submit_and_analyze

    assessment_uuid = _parse_uuid(assessment_id, "assessment")

    try:
        if not client.get_assessment(assessment_uuid):
            raise HTTPException(status_code=404, detail="Assessment not found")

        assessment, result = submit_and_analyze(assessment_uuid, db=client)

        return {
            "message": "Assessment completed successfully",
            "assessment": assessment,
            "analysis": result.model_dump(mode="json"),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error submitting assessment {assessment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/api/assessments/{assessment_id}/results")
def get_assessment_results(
    assessment_id: str,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Get the stored analysis of a completed assessment."""
    from src.agents.assess.fallback import fallback_analysis

    assessment_uuid = _parse_uuid(assessment_id, "assessment")

    try:
        assessment = client.get_assessment(assessment_uuid)
        if not assessment:
            raise HTTPException(status_code=404, detail="Assessment not found")

        if assessment.get("status") != AssessmentStatus.COMPLETED.value:
            raise HTTPException(status_code=400, detail="Assessment must be completed to view results")

        stored = client.get_latest_assessment_analysis(assessment_uuid)
        if stored:
            analysis = stored["result"]
        else:
            logger.info(f"No stored analysis for assessment {assessment_id}, using rule-based results")
            analysis = fallback_analysis(assessment.get("responses") or {}).model_dump(mode="json")

        return {
            "assessment": assessment,
            "analysis": analysis,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching results for assessment {assessment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


# Chat endpoints

@app.post("/api/chat/sessions", status_code=201)
def create_chat_session(
    request: ChatSessionCreate,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Create a new chat session."""
    try:
        return client.create_chat_session(request.user_id, request.title)

    except Exception as e:
        logger.error(f"Error creating chat session: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/api/chat/sessions/{user_id}")
def get_chat_sessions(
    user_id: str,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Get a user's chat sessions."""
    user_uuid = _parse_uuid(user_id, "user")

    try:
        return client.get_chat_sessions(user_uuid)

    except Exception as e:
        logger.error(f"Error fetching chat sessions: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.post("/api/chat/messages")
def send_message(
    request: ChatMessageRequest,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Send a message and get the assistant's answer."""
    from src.agents.chat.client import send_chat_message

    try:
        return send_chat_message(
            client,
            session_id=request.session_id,
            user_id=request.user_id,
            message=request.message,
        )

    except Exception as e:
        logger.error(f"Chat message error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/api/chat/sessions/{session_id}/messages")
def get_chat_messages(
    session_id: str,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Get messages for a chat session."""
    session_uuid = _parse_uuid(session_id, "session")

    try:
        return client.get_chat_messages(session_uuid)

    except Exception as e:
        logger.error(f"Error fetching chat messages: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.delete("/api/chat/sessions/{session_id}")
def delete_chat_session(
    session_id: str,
    user_id: str,
    client: SupabaseClient = Depends(get_supabase_client)
):
    """Delete a chat session owned by the requesting user."""
    session_uuid = _parse_uuid(session_id, "session")

    try:
        session = client.get_chat_session(session_uuid)
        if not session:
            raise HTTPException(status_code=404, detail="Chat session not found")

        if str(session.get("owner_user_id")) != user_id:
            raise HTTPException(status_code=403, detail="Not authorized to delete this session")

        client.delete_chat_session(session_uuid)
        return {"message": "Chat session deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting chat session {session_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.api.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)
