"""Authentication middleware to extract the caller from a bearer token."""

import logging

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from checkin_api.auth.token import InvalidToken, extract_bearer, verify_access_token
from checkin_api.middleware.correlation import get_correlation_id
from checkin_api.utils.metrics import auth_failures
from checkin_api.validation.result import MISSING_TOKEN_REASON, OutcomeCode, ValidationResponse

logger = logging.getLogger(__name__)

# Paths whose clients branch on an embedded status rather than the HTTP code
DECISION_PATHS = {"/validate-ticket"}
PROTECTED_PREFIXES = ("/validate-ticket", "/checkins")


class AuthMiddleware(BaseHTTPMiddleware):
    """Verify the bearer credential on protected paths."""

    async def dispatch(self, request: Request, call_next):
        """Process request with caller extraction."""
        path = request.url.path.rstrip("/") or "/"
        if request.method == "OPTIONS" or not path.startswith(PROTECTED_PREFIXES):
            return await call_next(request)

        token = extract_bearer(request.headers.get("authorization"))
        if not token:
            auth_failures.labels(reason="missing").inc()
            return self._reject(path, MISSING_TOKEN_REASON)

        try:
            caller = verify_access_token(token)
        except InvalidToken as e:
            auth_failures.labels(reason="invalid").inc()
            logger.warning(f"Rejected access token: {e}", extra={"path": path})
            return self._reject(path, None)

        request.state.caller = caller
        logger.info(
            "Authenticated request",
            extra={
                "user_id": caller.user_id,
                "correlation_id": get_correlation_id(request),
                "path": path,
            },
        )
        return await call_next(request)

    def _reject(self, path: str, reason):
        if path in DECISION_PATHS:
            body = ValidationResponse.error(OutcomeCode.UNAUTHENTICATED, reason=reason).to_body()
            return JSONResponse(status_code=status.HTTP_200_OK, content=body)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": reason or "Não autorizado (token inválido)"},
        )
