"""Ticket validation endpoint."""

import asyncio
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from checkin_api.db.session import get_session_factory
from checkin_api.middleware.correlation import get_correlation_id
from checkin_api.settings import get_settings
from checkin_api.utils.metrics import ticket_validations, validation_duration
from checkin_api.validation.engine import ValidationEngine
from checkin_api.validation.result import OutcomeCode, ValidationResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["validation"])


class ValidateTicketRequest(BaseModel):
    """Validate-ticket request model."""

    qrPayload: Optional[str] = Field(None, description="Raw text read from the QR code")
    eventId: Optional[str] = Field(None, description="Event the operator is checking in for")


def _respond(result: ValidationResponse) -> JSONResponse:
    # Decisions, including rejections, are always HTTP 200
    return JSONResponse(status_code=200, content=result.to_body())


@router.post("/validate-ticket")
async def validate_ticket(request: Request, session_factory: sessionmaker = Depends(get_session_factory)):
    """Validate a scanned ticket and check it in."""
    caller = getattr(request.state, "caller", None)
    if caller is None:
        return _respond(ValidationResponse.error(OutcomeCode.UNAUTHENTICATED))

    try:
        body = await request.json()
    except ValueError:
        body = None
    try:
        request_data = ValidateTicketRequest.model_validate(body or {})
    except ValidationError:
        request_data = ValidateTicketRequest()

    if not request_data.qrPayload or not request_data.eventId:
        ticket_validations.labels(status="invalid", code=OutcomeCode.MISSING_FIELDS.value).inc()
        return _respond(ValidationResponse.invalid(OutcomeCode.MISSING_FIELDS))

    settings = get_settings()
    correlation_id = get_correlation_id(request)
    timeout = settings.validation_timeout_seconds
    deadline = time.monotonic() + timeout

    def _validate() -> ValidationResponse:
        # The worker may outlive the request on timeout, so it owns its session
        db = session_factory()
        try:
            engine = ValidationEngine(db, settings)
            return engine.validate(
                request_data.qrPayload,
                request_data.eventId,
                caller.user_id,
                correlation_id,
                deadline=deadline,
            )
        finally:
            db.close()

    started = time.perf_counter()
    try:
        result = await asyncio.wait_for(
            run_in_threadpool(_validate),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.error(
            "Ticket validation timed out",
            extra={"event_id": request_data.eventId, "correlation_id": correlation_id},
        )
        result = ValidationResponse.error(OutcomeCode.TIMEOUT)
        ticket_validations.labels(status=result.status.value, code=result.code.value).inc()
    except Exception as e:
        logger.error(
            f"Unexpected error validating ticket: {e}",
            exc_info=True,
            extra={"event_id": request_data.eventId, "correlation_id": correlation_id},
        )
        result = ValidationResponse.error(OutcomeCode.INTERNAL_ERROR)
        ticket_validations.labels(status=result.status.value, code=result.code.value).inc()
    finally:
        validation_duration.observe(time.perf_counter() - started)

    return _respond(result)
