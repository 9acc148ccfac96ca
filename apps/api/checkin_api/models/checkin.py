"""Check-in ledger model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, text

from checkin_api.db.base import Base

CHECKIN_VALID = "valid"
CHECKIN_INVALID = "invalid"


class Checkin(Base):
    """Append-only record of one validation attempt."""

    __tablename__ = "checkins"
    __table_args__ = (
        # At most one successful check-in per ticket unit
        Index(
            "uq_checkins_valid_ticket",
            "id_ingresso",
            unique=True,
            postgresql_where=text("status = 'valid'"),
            sqlite_where=text("status = 'valid'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    id_compra = Column(String(64), nullable=True, index=True)
    id_evento = Column(String(64), nullable=True, index=True)
    id_ingresso = Column(String(64), nullable=True, index=True)
    buyer_email = Column(String(255), nullable=True)
    validated_by = Column(String(64), nullable=False, index=True)
    status = Column(String(16), nullable=False, index=True)  # valid, invalid
    reason = Column(Text, nullable=True)
    qr_payload = Column(Text, nullable=True)
    correlation_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
