"""Ticket lookup errors."""

from typing import Optional


class TicketLookupError(Exception):
    """Base error for failures to map a scanned payload to a ticket."""

    def __init__(self, message: str, raw_payload: Optional[str] = None):
        super().__init__(message)
        self.raw_payload = raw_payload


class TicketNotFound(TicketLookupError):
    """No lookup key matched the scanned identifier."""


class CorruptedPayload(TicketLookupError):
    """Payload decoded as structured data but carries no usable identity."""


class AmbiguousTicket(TicketLookupError):
    """A single-result lookup matched more than one row."""
