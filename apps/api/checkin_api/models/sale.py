"""Sale (venda) and purchase models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from checkin_api.db.base import Base


class Venda(Base):
    """One purchased, check-in-able ticket unit."""

    __tablename__ = "vendas"

    id = Column(String(64), primary_key=True)
    id_compra = Column(String(64), nullable=True, index=True)
    id_evento = Column(String(64), nullable=True, index=True)
    id_ingresso = Column(String(64), nullable=True, index=True)
    buyer_email = Column(String(255), nullable=True)
    buyer_name = Column(String(255), nullable=True)
    event_name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=True)
    status = Column(String(50), nullable=True)  # free text: confirmado, utilizado, cancelado, ...
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Purchase(Base):
    """Legacy purchase row, used to corroborate payment."""

    __tablename__ = "purchases"

    id = Column(String(64), primary_key=True)
    id_compra = Column(String(64), nullable=True, index=True)
    id_evento = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    buyer_name = Column(String(255), nullable=True)
    event_name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=True)
    status = Column(String(50), nullable=True)  # payment status: paid, pending, refunded
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
