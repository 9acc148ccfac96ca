"""Check-in ledger service."""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from checkin_api.models import CHECKIN_INVALID, CHECKIN_VALID, Checkin


class CheckinLedger:
    """Append-only audit trail of validation attempts.

    Rows are never updated or deleted. The ledger doubles as the duplicate-scan
    detector: a prior ``valid`` row for the same purchase or ticket means the
    ticket was already redeemed.
    """

    def __init__(self, db: Session):
        """Initialize ledger service."""
        self.db = db

    def append(
        self,
        status: str,
        validated_by: str,
        purchase_id: Optional[str] = None,
        event_id: Optional[str] = None,
        ticket_id: Optional[str] = None,
        buyer_email: Optional[str] = None,
        reason: Optional[str] = None,
        qr_payload: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Checkin:
        """Append one entry. Flushes but does not commit."""
        if status not in (CHECKIN_VALID, CHECKIN_INVALID):
            raise ValueError(f"Unknown check-in status: {status}")

        entry = Checkin(
            id_compra=purchase_id,
            id_evento=event_id,
            id_ingresso=ticket_id,
            buyer_email=buyer_email,
            validated_by=validated_by,
            status=status,
            reason=None if status == CHECKIN_VALID else reason,
            qr_payload=qr_payload,
            correlation_id=correlation_id,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def find_valid_by_purchase_or_ticket(
        self, purchase_id: Optional[str], ticket_id: Optional[str]
    ) -> Optional[Checkin]:
        """Earliest successful check-in for the purchase or ticket, if any."""
        keys = []
        if purchase_id:
            keys.append(Checkin.id_compra == purchase_id)
        if ticket_id:
            keys.append(Checkin.id_ingresso == ticket_id)
        if not keys:
            return None

        return (
            self.db.query(Checkin)
            .filter(or_(*keys), Checkin.status == CHECKIN_VALID)
            .order_by(Checkin.created_at.asc(), Checkin.id.asc())
            .first()
        )

    def recent(self, limit: int = 50, event_id: Optional[str] = None) -> list[Checkin]:
        """Most recent entries, newest first."""
        query = self.db.query(Checkin)
        if event_id:
            query = query.filter(Checkin.id_evento == event_id)
        return query.order_by(Checkin.created_at.desc(), Checkin.id.desc()).limit(limit).all()

