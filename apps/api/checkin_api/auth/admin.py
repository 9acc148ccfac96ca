"""Admin capability check."""

import logging
from typing import Protocol

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkin_api.auth.token import Caller
from checkin_api.db.session import get_db
from checkin_api.models import UserRole

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class AdminGate(Protocol):
    """Answers whether a caller is an administrator."""

    def is_admin(self, caller: Caller) -> bool:
        ...


class UserRoleAdminGate:
    """Admin gate backed by the ``user_roles`` table."""

    def __init__(self, db: Session):
        """Initialize gate with database session."""
        self.db = db

    def is_admin(self, caller: Caller) -> bool:
        try:
            role = (
                self.db.query(UserRole)
                .filter(UserRole.user_id == caller.user_id, UserRole.role == ADMIN_ROLE)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error checking admin role: {e}", extra={"user_id": caller.user_id})
            return False
        return role is not None


def get_admin_gate(db: Session = Depends(get_db)) -> AdminGate:
    return UserRoleAdminGate(db)


def require_admin(request: Request, gate: AdminGate = Depends(get_admin_gate)) -> Caller:
    """Dependency: the authenticated caller, who must be an admin."""
    caller = getattr(request.state, "caller", None)
    if caller is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Não autorizado")
    if not gate.is_admin(caller):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso restrito a administradores")
    return caller
