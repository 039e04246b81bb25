"""Configuration for the export FastAPI service."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    # Document store (Postgres)
    DATABASE_URL: str
    DATABASE_REQUIRE_SSL: bool = True

    # HubSpot OAuth app (token refresh)
    HUBSPOT_CLIENT_ID: str = ""
    HUBSPOT_CLIENT_SECRET: str = ""

    # OpenAI (optional; ai-insights steps are skipped without it)
    OPENAI_API_KEY: str | None = None

    # Auth
    WORKER_API_KEY: str


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
