"""Application configuration management."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import validator


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: Optional[str] = None

    # AI/ML
    openai_api_key: str
    openai_model: str = "gpt-4-turbo-preview"
    analysis_temperature: float = 0.0
    analysis_max_tokens: int = 4000
    llm_timeout_seconds: float = 30.0

    # RAG knowledge service
    rag_service_url: str = "http://localhost:8001"
    rag_timeout_seconds: float = 30.0

    # Application
    env: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    port: int = 3001

    # CORS
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @validator("allowed_origins", pre=True)
    def parse_cors_origins(cls, v):
        """Parse comma-separated origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @validator("debug", pre=True)
    def parse_debug(cls, v):
        """Parse debug boolean from string."""
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return v

    class Config:
        """Pydantic config."""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_supabase_key() -> str:
    """Prefer the service role key on the backend, fall back to the anon key."""
    return settings.supabase_service_role_key or settings.supabase_anon_key


def is_production() -> bool:
    """Check if running in production environment."""
    return settings.env.lower() == "production"


def get_log_config() -> dict:
    """Get logging configuration."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
            },
        },
        "handlers": {
            "console": {
                "level": settings.log_level,
                "class": "logging.StreamHandler",
                "formatter": "standard" if is_production() else "detailed",
            },
        },
        "root": {
            "level": settings.log_level,
            "handlers": ["console"],
        },
    }
