"""Correlation ID middleware."""

import re
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

CORRELATION_HEADER = "x-correlation-id"
# Scanner apps send their own ids; anything else is replaced before it reaches logs or the ledger
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def get_correlation_id(request: Request) -> Optional[str]:
    return getattr(request.state, "correlation_id", None)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation ID and echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        """Process request with correlation ID."""
        incoming = request.headers.get(CORRELATION_HEADER, "").strip()
        correlation_id = incoming if _ACCEPTED_ID.match(incoming) else str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        response: Response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
