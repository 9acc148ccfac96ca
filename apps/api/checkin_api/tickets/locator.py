"""Resolve scanned QR payloads to ticket identities."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from checkin_api.models import Purchase, Venda
from checkin_api.tickets.errors import TicketNotFound
from checkin_api.tickets.payload import TicketIdentity, decode_payload
from checkin_api.tickets.store import PurchaseLookup, SaleRecordStore

logger = logging.getLogger(__name__)


class LookupSource(str, Enum):
    """Where a ticket identity came from."""

    PAYLOAD = "payload"
    PURCHASE_BY_ID = "purchases.id"
    SALE_BY_PURCHASE_ID = "vendas.id_compra"
    SALE_BY_TICKET_ID = "vendas.id_ingresso"
    PURCHASE_BY_PURCHASE_ID = "purchases.id_compra"


@dataclass(frozen=True)
class LocatedTicket:
    """Locator result passed down the validation pipeline."""

    identity: TicketIdentity
    source: LookupSource
    sale: Optional[Venda] = None
    purchase: Optional[Purchase] = None

    @property
    def is_legacy(self) -> bool:
        return self.source is not LookupSource.PAYLOAD


Record = Union[Venda, Purchase]
LookupStrategy = tuple[LookupSource, Callable[[str], Optional[Record]]]


def first_match(strategies: Sequence[LookupStrategy], key: str) -> Optional[tuple[LookupSource, Record]]:
    """Run strategies in order and return the first hit."""
    for source, lookup in strategies:
        record = lookup(key)
        if record is not None:
            return source, record
    return None


def identity_from_sale(sale: Venda, raw_payload: str) -> TicketIdentity:
    return TicketIdentity(
        purchase_id=sale.id_compra or raw_payload,
        event_id=sale.id_evento or None,
        ticket_id=sale.id_ingresso or sale.id or raw_payload,
        buyer_email=sale.buyer_email or None,
    )


def identity_from_purchase(purchase: Purchase, raw_payload: str) -> TicketIdentity:
    return TicketIdentity(
        purchase_id=purchase.id_compra or purchase.id or raw_payload,
        event_id=purchase.id_evento or None,
        ticket_id=purchase.id or raw_payload,
        buyer_email=purchase.email or None,
    )


class TicketLocator:
    """Map a scanned payload to a canonical ticket identity.

    Structured payloads are trusted as-is. Anything else is a legacy bare
    identifier, resolved against the lookup strategies in priority order.
    """

    def __init__(self, sales: SaleRecordStore, purchases: PurchaseLookup):
        """Initialize locator with its record stores."""
        self.sales = sales
        self.purchases = purchases

    def strategies(self) -> list[LookupStrategy]:
        """Legacy lookup keys, highest priority first."""
        return [
            (LookupSource.PURCHASE_BY_ID, self.purchases.find_by_id),
            (LookupSource.SALE_BY_PURCHASE_ID, self.sales.find_by_purchase_id),
            (LookupSource.SALE_BY_TICKET_ID, self.sales.find_by_ticket_id),
            (LookupSource.PURCHASE_BY_PURCHASE_ID, self.purchases.find_by_purchase_id),
        ]

    def locate(self, raw_payload: str) -> LocatedTicket:
        """Locate the ticket for ``raw_payload``.

        Raises TicketNotFound, CorruptedPayload or AmbiguousTicket.
        """
        identity = decode_payload(raw_payload)
        if identity is not None:
            logger.debug("Structured payload decoded", extra={"identity": identity.as_dict()})
            return LocatedTicket(identity=identity, source=LookupSource.PAYLOAD)

        key = raw_payload.strip()
        match = first_match(self.strategies(), key)
        if match is None:
            raise TicketNotFound(f"No ticket matches scanned id {key}", raw_payload=raw_payload)

        source, record = match
        logger.info("Legacy payload resolved", extra={"source": source.value})
        if isinstance(record, Venda):
            return LocatedTicket(
                identity=identity_from_sale(record, key),
                source=source,
                sale=record,
            )
        return LocatedTicket(
            identity=identity_from_purchase(record, key),
            source=source,
            purchase=record,
        )
