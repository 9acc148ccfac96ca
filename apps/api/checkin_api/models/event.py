"""Event and user role models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint

from checkin_api.db.base import Base


class Event(Base):
    """Event referenced by sales; managed outside this service."""

    __tablename__ = "events"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime, nullable=True)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserRole(Base):
    """Role granted to an identity-provider user."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = Column(String(50), nullable=False)  # admin, operator
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
