"""Ticket validation and check-in state machine."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkin_api.ledger.service import CheckinLedger
from checkin_api.models import CHECKIN_INVALID, CHECKIN_VALID, Event, Purchase, Venda
from checkin_api.settings import Settings, get_settings
from checkin_api.tickets.errors import AmbiguousTicket, CorruptedPayload, TicketLookupError, TicketNotFound
from checkin_api.tickets.locator import LocatedTicket, TicketLocator
from checkin_api.tickets.payload import TicketIdentity
from checkin_api.tickets.status import StatusTable, TicketState
from checkin_api.tickets.store import PurchaseLookup, SaleRecordStore
from checkin_api.utils.metrics import ledger_write_failures, ticket_validations
from checkin_api.validation.result import (
    CONCURRENT_REDEMPTION_REASON,
    OutcomeCode,
    ValidationResponse,
    invalid_status_reason,
    not_found_in_system_reason,
)

logger = logging.getLogger(__name__)

LOOKUP_ERROR_CODES = {
    TicketNotFound: OutcomeCode.NOT_FOUND,
    CorruptedPayload: OutcomeCode.CORRUPTED,
    AmbiguousTicket: OutcomeCode.AMBIGUOUS,
}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _compact(data: dict) -> dict:
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class ValidationAttempt:
    """Request-scoped context for one scan."""

    qr_payload: str
    event_id: str
    caller_id: str
    correlation_id: Optional[str] = None
    deadline: Optional[float] = None  # time.monotonic() value
    identity: Optional[TicketIdentity] = None

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline


class ValidationEngine:
    """Decide whether a scanned ticket may be checked in.

    Pipeline, stopping at the first failure: locate, event match, duplicate
    scan, sale status, payment cross-check, conditional redemption. Every
    decision, success or failure, appends exactly one ledger entry.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        """Initialize engine with database session."""
        self.db = db
        self.settings = settings or get_settings()
        self.status_table = StatusTable.from_settings(self.settings)
        self.sales = SaleRecordStore(db, self.status_table)
        self.purchases = PurchaseLookup(db)
        self.locator = TicketLocator(self.sales, self.purchases)
        self.ledger = CheckinLedger(db)

    def validate(
        self,
        qr_payload: Optional[str],
        event_id: Optional[str],
        caller_id: str,
        correlation_id: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> ValidationResponse:
        """Validate one scan and return the decision.

        ``deadline`` is a ``time.monotonic()`` value. Once it has passed the
        ticket is no longer redeemed, so a caller that stopped waiting never
        sees a timeout for a ticket that was in fact checked in.
        """
        if not qr_payload or not str(qr_payload).strip() or not event_id or not str(event_id).strip():
            return self._finish(ValidationResponse.invalid(OutcomeCode.MISSING_FIELDS))

        attempt = ValidationAttempt(
            qr_payload=str(qr_payload).strip(),
            event_id=str(event_id).strip(),
            caller_id=caller_id,
            correlation_id=correlation_id,
            deadline=deadline,
        )
        logger.info(
            "Validating ticket",
            extra={"event_id": attempt.event_id, "correlation_id": correlation_id},
        )
        logger.debug("Scanned payload", extra={"qr_payload": attempt.qr_payload})

        # 1. Locate
        try:
            located = self.locator.locate(attempt.qr_payload)
        except TicketLookupError as e:
            return self._reject_lookup(attempt, e)
        attempt.identity = located.identity

        # 2. Event match on the located identity
        if self._event_mismatch(attempt):
            return self._reject(attempt, OutcomeCode.EVENT_MISMATCH)

        try:
            sale = self._resolve_sale(located, attempt)
        except AmbiguousTicket as e:
            return self._reject_lookup(attempt, e)
        if sale is None:
            logger.warning(
                "Sale record not found after all lookups",
                extra={
                    "source": located.source.value,
                    "identity": attempt.identity.as_dict(),
                    "correlation_id": correlation_id,
                },
            )
            return self._reject(attempt, OutcomeCode.NOT_FOUND)

        # Identity may have gained an event id from the sale
        if self._event_mismatch(attempt):
            return self._reject(attempt, OutcomeCode.EVENT_MISMATCH)

        # 3. Duplicate scan
        prior = self.ledger.find_valid_by_purchase_or_ticket(
            attempt.identity.purchase_id, attempt.identity.ticket_id
        )
        if prior is not None:
            return self._reject(
                attempt,
                OutcomeCode.ALREADY_SCANNED,
                extra={
                    "first_scanned_at": _iso(prior.created_at),
                    "buyer_name": sale.buyer_name,
                },
            )

        # 4. Status
        state = self.status_table.classify(sale.status)
        if state is TicketState.USED:
            return self._reject(attempt, OutcomeCode.ALREADY_USED, extra={"used_at": _iso(sale.used_at)})
        if state is TicketState.CANCELLED:
            return self._reject(attempt, OutcomeCode.CANCELLED)
        if state is TicketState.UNKNOWN:
            if self.settings.reject_unknown_status:
                return self._reject(
                    attempt,
                    OutcomeCode.INVALID_STATUS,
                    reason=invalid_status_reason(sale.status),
                    extra={"sale_status": sale.status},
                )
            logger.warning(
                f"Unrecognized sale status {sale.status!r}, treating as redeemable",
                extra={"sale_id": sale.id, "correlation_id": correlation_id},
            )

        # 5. Payment cross-check
        purchase = located.purchase or self.purchases.try_find(
            ticket_id=attempt.identity.ticket_id,
            purchase_id=attempt.identity.purchase_id,
        )
        if purchase is not None and self.status_table.is_payment_unconfirmed(purchase.status):
            return self._reject(attempt, OutcomeCode.PAYMENT_UNCONFIRMED)

        # 6. Commit
        if attempt.expired:
            return self._abandon(attempt)
        return self._redeem(attempt, sale, purchase)

    def _resolve_sale(self, located: LocatedTicket, attempt: ValidationAttempt) -> Optional[Venda]:
        """Find the sale behind a located ticket and complete the identity."""
        sale = located.sale or self.sales.resolve(attempt.identity, attempt.qr_payload)
        if sale is None:
            return None

        sale_fields = {
            "purchase_id": sale.id_compra,
            "event_id": sale.id_evento,
            "ticket_id": sale.id_ingresso or sale.id,
            "buyer_email": sale.buyer_email,
        }
        if located.is_legacy:
            identity = attempt.identity.override(**sale_fields)
        else:
            identity = attempt.identity.fill_missing(**sale_fields)
        attempt.identity = identity.fill_missing(event_id=attempt.event_id)
        return sale

    def _event_mismatch(self, attempt: ValidationAttempt) -> bool:
        ticket_event = attempt.identity.event_id if attempt.identity else None
        if not ticket_event or not attempt.event_id:
            return False
        if ticket_event != attempt.event_id:
            logger.info(
                "Event mismatch",
                extra={"ticket_event_id": ticket_event, "event_id": attempt.event_id},
            )
            return True
        return False

    def _redeem(self, attempt: ValidationAttempt, sale: Venda, purchase: Optional[Purchase]) -> ValidationResponse:
        used_at = datetime.utcnow()
        won = self.sales.mark_used(attempt.identity.purchase_id, used_at, sale_id=sale.id)
        if not won:
            self.db.rollback()
            logger.warning(
                "Conditional redemption matched no row; ticket redeemed concurrently",
                extra={"sale_id": sale.id, "correlation_id": attempt.correlation_id},
            )
            return self._reject(
                attempt,
                OutcomeCode.ALREADY_USED,
                reason=CONCURRENT_REDEMPTION_REASON,
            )
        self.db.commit()

        # The ticket is redeemed from here on; a lost audit row does not change that
        self._write_ledger(attempt, CHECKIN_VALID)

        identity = attempt.identity
        data = {
            **identity.as_dict(),
            "buyer_email": identity.buyer_email or sale.buyer_email or (purchase.email if purchase else None),
            "buyer_name": sale.buyer_name or (purchase.buyer_name if purchase else None),
            "event_name": self._event_name(sale, purchase, identity.event_id),
            "quantity": sale.quantity if sale.quantity is not None else (purchase.quantity if purchase else None),
            "used_at": used_at.isoformat(),
        }
        logger.info(
            "Check-in completed",
            extra={"sale_id": sale.id, "event_id": attempt.event_id, "correlation_id": attempt.correlation_id},
        )
        return self._finish(ValidationResponse.valid(_compact(data)))

    def _abandon(self, attempt: ValidationAttempt) -> ValidationResponse:
        """Give up before redeeming; the caller has already been told the scan timed out."""
        self.db.rollback()
        logger.warning(
            "Validation deadline passed before redemption; ticket left unredeemed",
            extra={"event_id": attempt.event_id, "correlation_id": attempt.correlation_id},
        )
        result = ValidationResponse.error(OutcomeCode.TIMEOUT)
        self._write_ledger(attempt, CHECKIN_INVALID, reason=result.reason)
        return self._finish(result)

    def _event_name(self, sale: Venda, purchase: Optional[Purchase], event_id: Optional[str]) -> Optional[str]:
        if sale.event_name:
            return sale.event_name
        if purchase is not None and purchase.event_name:
            return purchase.event_name
        if not event_id:
            return None
        event = self.db.query(Event).filter(Event.id == event_id).first()
        return event.title if event else None

    def _reject_lookup(self, attempt: ValidationAttempt, error: TicketLookupError) -> ValidationResponse:
        code = LOOKUP_ERROR_CODES.get(type(error), OutcomeCode.NOT_FOUND)
        reason = None
        data = None
        if code is OutcomeCode.NOT_FOUND:
            reason = not_found_in_system_reason(attempt.qr_payload)
            data = {"scanned_id": attempt.qr_payload, "event_id": attempt.event_id}
        logger.info(
            f"Ticket lookup failed: {error}",
            extra={"code": code.value, "correlation_id": attempt.correlation_id},
        )
        return self._reject(attempt, code, reason=reason, data=data)

    def _reject(
        self,
        attempt: ValidationAttempt,
        code: OutcomeCode,
        reason: Optional[str] = None,
        data: Optional[dict] = None,
        extra: Optional[dict] = None,
    ) -> ValidationResponse:
        if data is None and attempt.identity is not None:
            data = attempt.identity.as_dict()
        if data is not None:
            data = _compact({**data, **(extra or {})})
        result = ValidationResponse.invalid(code, reason=reason, data=data)
        self._write_ledger(attempt, CHECKIN_INVALID, reason=result.reason)
        return self._finish(result)

    def _write_ledger(self, attempt: ValidationAttempt, status: str, reason: Optional[str] = None) -> None:
        """Append and commit a ledger entry; failures are logged, never raised."""
        identity = attempt.identity or TicketIdentity()
        try:
            self.ledger.append(
                status=status,
                validated_by=attempt.caller_id,
                purchase_id=identity.purchase_id,
                event_id=attempt.event_id,
                ticket_id=identity.ticket_id,
                buyer_email=identity.buyer_email,
                reason=reason,
                qr_payload=attempt.qr_payload,
                correlation_id=attempt.correlation_id,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            ledger_write_failures.labels(status=status).inc()
            logger.error(
                f"Failed to write check-in ledger entry: {e}",
                exc_info=True,
                extra={"status": status, "correlation_id": attempt.correlation_id},
            )

    def _finish(self, result: ValidationResponse) -> ValidationResponse:
        ticket_validations.labels(status=result.status.value, code=result.code.value).inc()
        return result
