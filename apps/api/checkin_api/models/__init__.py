"""Database models - import all models here for Alembic discovery."""

from checkin_api.models.checkin import CHECKIN_INVALID, CHECKIN_VALID, Checkin
from checkin_api.models.event import Event, UserRole
from checkin_api.models.sale import Purchase, Venda

__all__ = [
    "Venda",
    "Purchase",
    "Checkin",
    "CHECKIN_VALID",
    "CHECKIN_INVALID",
    "Event",
    "UserRole",
]
