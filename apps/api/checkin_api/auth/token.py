"""Bearer token verification for identity-provider access tokens."""

import logging
from dataclasses import dataclass
from typing import Optional

from jose import JWTError, jwt

from checkin_api.settings import get_settings

logger = logging.getLogger(__name__)


class InvalidToken(Exception):
    """Access token missing, malformed, expired or signed with another key."""


@dataclass(frozen=True)
class Caller:
    """Authenticated user performing the request."""

    user_id: str
    email: Optional[str] = None


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def verify_access_token(token: str) -> Caller:
    """Verify signature, expiry and audience; return the caller."""
    settings = get_settings()
    options = {"verify_aud": bool(settings.jwt_audience)}
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except JWTError as e:
        raise InvalidToken(str(e)) from e

    user_id = claims.get("sub")
    if not user_id:
        raise InvalidToken("Token has no subject")
    return Caller(user_id=str(user_id), email=claims.get("email"))
