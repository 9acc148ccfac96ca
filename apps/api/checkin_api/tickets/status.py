"""Sale status normalization."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from checkin_api.settings import Settings, get_settings


class TicketState(str, Enum):
    """Redemption state derived from the free-text sale status."""

    UNREDEEMED = "unredeemed"
    USED = "used"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


def normalize_text(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _normalized_set(values: Iterable[str]) -> frozenset:
    return frozenset(normalize_text(value) for value in values if normalize_text(value))


@dataclass(frozen=True)
class StatusTable:
    """Synonym sets used to classify sale and payment statuses."""

    used: frozenset
    cancelled: frozenset
    confirmed: frozenset
    paid: frozenset

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "StatusTable":
        settings = settings or get_settings()
        return cls(
            used=_normalized_set(settings.used_statuses),
            cancelled=_normalized_set(settings.cancelled_statuses),
            confirmed=_normalized_set(settings.confirmed_statuses),
            paid=_normalized_set(settings.paid_statuses),
        )

    @property
    def terminal(self) -> frozenset:
        """Statuses that can never be redeemed again."""
        return self.used | self.cancelled

    def classify(self, raw_status: Optional[str]) -> TicketState:
        """Map a raw sale status to a TicketState.

        A missing or blank status counts as unredeemed.
        """
        status = normalize_text(raw_status)
        if not status or status in self.confirmed:
            return TicketState.UNREDEEMED
        if status in self.used:
            return TicketState.USED
        if status in self.cancelled:
            return TicketState.CANCELLED
        return TicketState.UNKNOWN

    def is_payment_unconfirmed(self, raw_status: Optional[str]) -> bool:
        """True only for an explicit, non-paid payment status."""
        status = normalize_text(raw_status)
        return bool(status) and status not in self.paid


def normalize_status(raw_status: Optional[str], table: Optional[StatusTable] = None) -> TicketState:
    """Classify ``raw_status`` with the configured synonym table."""
    return (table or StatusTable.from_settings()).classify(raw_status)
