"""
Application configuration using Pydantic settings.
"""
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str = "sqlite:///./mission_control.db"

    # API
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Mission Control API"
    DEBUG: bool = False

    # CORS - comma-separated origins
    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"

    # Identity: the acting agent is resolved from this header
    AGENT_SESSION_HEADER: str = "X-Agent-Session"

    # Pagination
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 100  # hard ceiling, never raised by callers
    VERSION_HISTORY_LIMIT: int = 10
    SEARCH_SCAN_LIMIT: int = 100

    # Deliverable workflow
    ENFORCE_STATUS_TRANSITIONS: bool = True
    VERSION_CONFLICT_RETRIES: int = 3

    # Activity retention
    ACTIVITY_RETENTION_DAYS: int = 30
    ACTIVITY_RETENTION_MAX_DAYS: int = 36500

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "200/minute"

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from the comma-separated setting."""
        return [i.strip() for i in self.BACKEND_CORS_ORIGINS.split(",") if i.strip()]

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True


# Create global settings instance
settings = Settings()
