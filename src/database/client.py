"""Supabase client wrapper for easier integration."""

from datetime import datetime, timezone
from typing import List, Dict, Any, Optional
import logging
from uuid import UUID

from supabase import create_client, Client
from src.config.settings import settings, get_supabase_key
from src.models.assessment import (
    AssessmentCreate, AssessmentAnalysisCreate, AssessmentStatus,
    CompanyCreate, UserProfileUpsert, ChatMessageCreate,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseClient:
    """Wrapper for Supabase client with type safety and error handling."""

    def __init__(self):
        if not settings.supabase_url or not get_supabase_key():
            raise ValueError("Supabase URL and key must be provided")

        self.client: Client = create_client(
            settings.supabase_url,
            get_supabase_key()
        )

    # Users & Companies

    def get_user(self, user_id: UUID) -> Optional[Dict[str, Any]]:
        """Get user profile by ID."""
        try:
            response = self.client.table("users").select("id, company_id").eq(
                "id", str(user_id)
            ).execute()

            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Error fetching user {user_id}: {e}")
            raise

    def get_user_with_company(self, user_id: UUID) -> Optional[Dict[str, Any]]:
        """Get user profile joined with its company."""
        try:
            response = self.client.table("users").select(
                "id, full_name, company_id, company_role, onboarding_basic_completed_at, "
                "companies(id, name, sector, employees_estimate)"
            ).eq("id", str(user_id)).execute()

            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Error fetching user with company {user_id}: {e}")
            raise

    def get_auth_user_email(self, user_id: UUID) -> Optional[str]:
        """Look up a user's email in the hosted auth provider."""
        try:
            response = self.client.auth.admin.get_user_by_id(str(user_id))
            user = getattr(response, "user", None)
            return getattr(user, "email", None)

        except Exception as e:
            logger.error(f"Error fetching auth user {user_id}: {e}")
            raise

    def upsert_user_profile(self, profile: UserProfileUpsert) -> Dict[str, Any]:
        """Create or update a user profile."""
        try:
            data = profile.model_dump(mode="json", exclude_none=True)
            data["updated_at"] = _now()
            response = self.client.table("users").upsert(data).execute()

            if not response.data:
                raise ValueError("Failed to upsert user profile")

            return response.data[0]

        except Exception as e:
            logger.error(f"Error upserting user {profile.id}: {e}")
            raise

    def get_company_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Get company by exact name."""
        try:
            response = self.client.table("companies").select("id").eq(
                "name", name
            ).execute()

            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Error fetching company '{name}': {e}")
            raise

    def create_company(self, company: CompanyCreate) -> Dict[str, Any]:
        """Create a new company."""
        try:
            response = self.client.table("companies").insert(
                company.model_dump(mode="json", exclude_none=True)
            ).execute()

            if not response.data:
                raise ValueError("Failed to create company")

            return response.data[0]

        except Exception as e:
            logger.error(f"Error creating company: {e}")
            raise

    # Assessments

    def create_assessment(self, assessment: AssessmentCreate) -> Dict[str, Any]:
        """Create a new initial assessment."""
        try:
            response = self.client.table("initial_assessments").insert(
                assessment.model_dump(mode="json", exclude_none=True)
            ).execute()

            if not response.data:
                raise ValueError("Failed to create assessment")

            return response.data[0]

        except Exception as e:
            logger.error(f"Error creating assessment: {e}")
            raise

    def get_assessment(self, assessment_id: UUID) -> Optional[Dict[str, Any]]:
        """Get assessment by ID."""
        try:
            response = self.client.table("initial_assessments").select("*").eq(
                "id", str(assessment_id)
            ).execute()

            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Error fetching assessment {assessment_id}: {e}")
            raise

    def get_latest_assessment(self, user_id: UUID) -> Optional[Dict[str, Any]]:
        """Get the most recent assessment for a user."""
        try:
            response = self.client.table("initial_assessments").select("*").eq(
                "user_id", str(user_id)
            ).order("created_at", desc=True).limit(1).execute()

            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Error fetching assessment for user {user_id}: {e}")
            raise

    def update_assessment_responses(
        self,
        assessment_id: UUID,
        responses: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Replace the stored responses of an assessment."""
        try:
            response = self.client.table("initial_assessments").update({
                "responses": responses,
                "updated_at": _now(),
            }).eq("id", str(assessment_id)).execute()

            if not response.data:
                raise ValueError(f"Assessment {assessment_id} not found")

            return response.data[0]

        except Exception as e:
            logger.error(f"Error updating assessment {assessment_id}: {e}")
            raise

    def complete_assessment(self, assessment_id: UUID) -> Dict[str, Any]:
        """Mark an assessment as completed."""
        try:
            now = _now()
            response = self.client.table("initial_assessments").update({
                "status": AssessmentStatus.COMPLETED.value,
                "completed_at": now,
                "updated_at": now,
            }).eq("id", str(assessment_id)).execute()

            if not response.data:
                raise ValueError(f"Assessment {assessment_id} not found")

            return response.data[0]

        except Exception as e:
            logger.error(f"Error completing assessment {assessment_id}: {e}")
            raise

    # Assessment Analyses

    def create_assessment_analysis(
        self,
        analysis: AssessmentAnalysisCreate
    ) -> Dict[str, Any]:
        """Store an analysis result for an assessment."""
        try:
            data = analysis.model_dump(mode="json", exclude_none=True)
            response = self.client.table("assessment_analyses").insert(data).execute()

            if not response.data:
                raise ValueError("Failed to create assessment analysis")

            return response.data[0]

        except Exception as e:
            logger.error(f"Error creating assessment analysis: {e}")
            raise

    def get_latest_assessment_analysis(
        self,
        assessment_id: UUID
    ) -> Optional[Dict[str, Any]]:
        """Get the most recent analysis for an assessment."""
        try:
            response = self.client.table("assessment_analyses").select("*").eq(
                "assessment_id", str(assessment_id)
            ).order("created_at", desc=True).limit(1).execute()

            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Error fetching analysis for assessment {assessment_id}: {e}")
            raise

    # Chat

    def create_chat_session(self, user_id: UUID, title: Optional[str] = None) -> Dict[str, Any]:
        """Create a new chat session."""
        try:
            now = _now()
            response = self.client.table("chat_sessions").insert({
                "owner_user_id": str(user_id),
                "title": title or "New Chat",
                "created_at": now,
                "updated_at": now,
            }).execute()

            if not response.data:
                raise ValueError("Failed to create chat session")

            return response.data[0]

        except Exception as e:
            logger.error(f"Error creating chat session: {e}")
            raise

    def get_chat_session(self, session_id: UUID) -> Optional[Dict[str, Any]]:
        """Get chat session by ID."""
        try:
            response = self.client.table("chat_sessions").select("*").eq(
                "id", str(session_id)
            ).execute()

            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Error fetching chat session {session_id}: {e}")
            raise

    def get_chat_sessions(self, user_id: UUID) -> List[Dict[str, Any]]:
        """Get a user's chat sessions, most recently active first."""
        try:
            response = self.client.table("chat_sessions").select("*").eq(
                "owner_user_id", str(user_id)
            ).order("updated_at", desc=True).execute()

            return response.data or []

        except Exception as e:
            logger.error(f"Error fetching chat sessions for {user_id}: {e}")
            raise

    def touch_chat_session(self, session_id: UUID) -> None:
        """Bump a session's updated_at timestamp."""
        try:
            self.client.table("chat_sessions").update({
                "updated_at": _now()
            }).eq("id", str(session_id)).execute()

        except Exception as e:
            logger.warning(f"Could not update timestamp of chat session {session_id}: {e}")

    def delete_chat_session(self, session_id: UUID) -> None:
        """Delete a chat session; messages cascade in the database."""
        try:
            self.client.table("chat_sessions").delete().eq(
                "id", str(session_id)
            ).execute()

        except Exception as e:
            logger.error(f"Error deleting chat session {session_id}: {e}")
            raise

    def create_chat_message(self, message: ChatMessageCreate) -> Dict[str, Any]:
        """Store a chat message."""
        try:
            data = message.model_dump(mode="json")
            data["created_at"] = _now()
            response = self.client.table("chat_messages").insert(data).execute()

            if not response.data:
                raise ValueError("Failed to create chat message")

            return response.data[0]

        except Exception as e:
            logger.error(f"Error creating chat message: {e}")
            raise

    def get_chat_messages(self, session_id: UUID) -> List[Dict[str, Any]]:
        """Get a session's messages in chronological order."""
        try:
            response = self.client.table("chat_messages").select("*").eq(
                "session_id", str(session_id)
            ).order("created_at").execute()

            return response.data or []

        except Exception as e:
            logger.error(f"Error fetching messages for session {session_id}: {e}")
            raise


# Global Supabase client instance
supabase_client: Optional[SupabaseClient] = None


def get_supabase_client() -> SupabaseClient:
    """Get Supabase client (dependency injection)."""
    global supabase_client
    if not supabase_client:
        supabase_client = SupabaseClient()
    return supabase_client
