"""Sale and purchase record access."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from checkin_api.models import Purchase, Venda
from checkin_api.settings import get_settings
from checkin_api.tickets.errors import AmbiguousTicket
from checkin_api.tickets.payload import TicketIdentity
from checkin_api.tickets.status import StatusTable

logger = logging.getLogger(__name__)


def _single(query, description: str):
    """Return the only row of ``query``, None for no rows, fail on several."""
    rows = query.limit(2).all()
    if len(rows) > 1:
        raise AmbiguousTicket(f"More than one row matches {description}")
    return rows[0] if rows else None


class SaleRecordStore:
    """Lookups and the redemption write for ``vendas``."""

    def __init__(self, db: Session, status_table: Optional[StatusTable] = None):
        """Initialize store with database session."""
        self.db = db
        self.status_table = status_table or StatusTable.from_settings()

    def find_by_purchase_id(self, purchase_id: Optional[str]) -> Optional[Venda]:
        if not purchase_id:
            return None
        return _single(
            self.db.query(Venda).filter(Venda.id_compra == purchase_id),
            f"vendas.id_compra={purchase_id}",
        )

    def find_by_ticket_id(self, ticket_id: Optional[str]) -> Optional[Venda]:
        if not ticket_id:
            return None
        return _single(
            self.db.query(Venda).filter(Venda.id_ingresso == ticket_id),
            f"vendas.id_ingresso={ticket_id}",
        )

    def find_by_any_id(self, raw_id: Optional[str]) -> Optional[Venda]:
        """Disjunctive lookup across purchase id, ticket id and row id."""
        if not raw_id:
            return None
        return _single(
            self.db.query(Venda).filter(
                or_(
                    Venda.id_compra == raw_id,
                    Venda.id_ingresso == raw_id,
                    Venda.id == raw_id,
                )
            ),
            f"vendas.*={raw_id}",
        )

    def resolve(self, identity: TicketIdentity, raw_payload: Optional[str] = None) -> Optional[Venda]:
        """Find the sale for an identity: purchase id, ticket id, then raw payload.

        A key shared by several sales (one purchase, many ticket units) does not
        stop the chain; the next, narrower key is tried. AmbiguousTicket is raised
        only when no key identifies a single sale.
        """
        ambiguous = None
        for lookup, key in (
            (self.find_by_purchase_id, identity.purchase_id),
            (self.find_by_ticket_id, identity.ticket_id),
            (self.find_by_any_id, raw_payload),
        ):
            try:
                sale = lookup(key)
            except AmbiguousTicket as e:
                logger.info(f"Skipping ambiguous sale lookup: {e}")
                ambiguous = ambiguous or e
                continue
            if sale is not None:
                return sale
        if ambiguous is not None:
            raise ambiguous
        return None

    def mark_used(
        self,
        purchase_id: Optional[str],
        used_at: datetime,
        sale_id: Optional[str] = None,
    ) -> bool:
        """Conditionally redeem a sale.

        Single UPDATE guarded by the current status, so only one concurrent
        caller can move the row out of a redeemable state. Returns False when
        no row was updated. Does not commit.
        """
        if sale_id:
            target = Venda.id == sale_id
        elif purchase_id:
            target = Venda.id_compra == purchase_id
        else:
            raise ValueError("mark_used needs a purchase id or a sale id")

        normalized_status = func.lower(func.trim(Venda.status))
        updated = (
            self.db.query(Venda)
            .filter(
                target,
                or_(
                    Venda.status.is_(None),
                    normalized_status.notin_(sorted(self.status_table.terminal)),
                ),
            )
            .update(
                {
                    Venda.status: get_settings().used_status_value,
                    Venda.used_at: used_at,
                },
                synchronize_session=False,
            )
        )
        logger.debug(
            "Conditional redemption update",
            extra={"purchase_id": purchase_id, "sale_id": sale_id, "rows": updated},
        )
        return updated > 0


class PurchaseLookup:
    """Optional corroboration from the legacy ``purchases`` table."""

    def __init__(self, db: Session):
        """Initialize lookup with database session."""
        self.db = db

    def find_by_id(self, record_id: Optional[str]) -> Optional[Purchase]:
        if not record_id:
            return None
        return _single(
            self.db.query(Purchase).filter(Purchase.id == record_id),
            f"purchases.id={record_id}",
        )

    def find_by_purchase_id(self, purchase_id: Optional[str]) -> Optional[Purchase]:
        if not purchase_id:
            return None
        return _single(
            self.db.query(Purchase).filter(Purchase.id_compra == purchase_id),
            f"purchases.id_compra={purchase_id}",
        )

    def try_find(
        self, ticket_id: Optional[str] = None, purchase_id: Optional[str] = None
    ) -> Optional[Purchase]:
        """Best-effort lookup; absence (or ambiguity) is not an error."""
        try:
            return self.find_by_id(ticket_id) or self.find_by_purchase_id(purchase_id)
        except AmbiguousTicket as e:
            logger.warning(
                f"Skipping purchase cross-check: {e}",
                extra={"ticket_id": ticket_id, "purchase_id": purchase_id},
            )
            return None
