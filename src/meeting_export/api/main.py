"""FastAPI application for the meeting export service."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from meeting_export.adapters.registry import build_adapter_registry
from meeting_export.clients.openai_client import OpenAIClient
from meeting_export.clients.postgres_store import PostgresDocumentStore

from .config import get_settings
from .routes.export import router as export_router
from .routes.health import router as health_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize persistent clients at startup, clean up at shutdown."""
    settings = get_settings()

    logger.info("lifespan.startup")

    store = PostgresDocumentStore(
        settings.DATABASE_URL, require_ssl=settings.DATABASE_REQUIRE_SSL
    )
    await store.connect()
    await store.setup_schema()

    # OpenAI is optional: without it ai-insights steps are skipped
    openai: OpenAIClient | None = None
    if settings.OPENAI_API_KEY:
        openai = OpenAIClient(api_key=settings.OPENAI_API_KEY)
    else:
        logger.warning("lifespan.openai_not_configured")

    registry = build_adapter_registry(
        openai_client=openai,
        hubspot_client_id=settings.HUBSPOT_CLIENT_ID,
        hubspot_client_secret=settings.HUBSPOT_CLIENT_SECRET,
    )

    # Store on app.state for request handlers
    app.state.store = store
    app.state.openai = openai
    app.state.registry = registry

    logger.info("lifespan.ready", adapters=sorted(t.value for t in registry))
    yield

    # Shutdown
    logger.info("lifespan.shutdown")
    await store.close()
    if openai is not None:
        await openai.close()


app = FastAPI(
    title="meeting-export",
    description="Exports meeting summaries and action items to the user's connected integrations",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(export_router)
