"""POST /export: run every configured automation step for a user."""

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from meeting_export.dispatcher import ExportDispatcher
from meeting_export.errors import NoTranscriptError, UserNotFoundError
from meeting_export.repository import ExportRepository

from ..auth import verify_worker_token

logger = structlog.get_logger(__name__)

router = APIRouter()

# Run failures that mean "nothing to export for this user"
_NOT_FOUND_ERRORS = {NoTranscriptError.__name__, UserNotFoundError.__name__}


class ExportRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


@router.post("/export")
async def export_meeting(
    body: ExportRequest,
    request: Request,
    _auth: None = Depends(verify_worker_token),
):
    """Export the user's most recent meeting to all configured integrations."""
    log = logger.bind(user_id=body.user_id)
    log.info("export.received")

    try:
        dispatcher = ExportDispatcher(
            repository=ExportRepository(request.app.state.store),
            registry=request.app.state.registry,
        )
        result = await dispatcher.export(body.user_id)
    except Exception as e:
        log.error("export.failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=500,
            content={"error": str(e), "success": False},
        )

    log.info(
        "export.complete",
        success=result.success,
        run_id=result.run_id,
        export_time_ms=result.export_time_ms,
    )
    if result.success:
        return result.to_dict()
    status_code = 404 if result.error_type in _NOT_FOUND_ERRORS else 500
    return JSONResponse(status_code=status_code, content=result.to_dict())
