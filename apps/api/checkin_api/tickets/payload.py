"""Structured QR payload codec.

Structured payloads are standard Base64 over a UTF-8 JSON object that carries
the ticket identity. Anything that does not decode that way is treated as a
legacy bare identifier by the locator.
"""

import base64
import json
from dataclasses import dataclass, replace
from typing import Optional

from checkin_api.tickets.errors import CorruptedPayload

# Canonical field -> accepted keys, first match wins
PAYLOAD_KEYS = {
    "purchase_id": ("id_compra", "purchase_id"),
    "event_id": ("id_evento", "event_id"),
    "ticket_id": ("id_ingresso", "ticket_id"),
    "buyer_email": ("email", "buyer_email"),
}


@dataclass(frozen=True)
class TicketIdentity:
    """Canonical identity of one ticket unit."""

    purchase_id: Optional[str] = None
    event_id: Optional[str] = None
    ticket_id: Optional[str] = None
    buyer_email: Optional[str] = None

    def fill_missing(self, **values) -> "TicketIdentity":
        """Return a copy with empty fields filled from ``values``."""
        updates = {
            name: value
            for name, value in values.items()
            if value and not getattr(self, name)
        }
        return replace(self, **updates) if updates else self

    def override(self, **values) -> "TicketIdentity":
        """Return a copy where every non-empty value in ``values`` wins."""
        updates = {name: value for name, value in values.items() if value}
        return replace(self, **updates) if updates else self

    def as_dict(self) -> dict:
        return {
            "purchase_id": self.purchase_id,
            "event_id": self.event_id,
            "ticket_id": self.ticket_id,
            "buyer_email": self.buyer_email,
        }


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def decode_payload(raw: str) -> Optional[TicketIdentity]:
    """Decode a structured payload.

    Returns None when ``raw`` is not Base64-encoded JSON object text, so the
    caller can fall back to legacy resolution. Raises CorruptedPayload when
    the object decodes but identifies neither a purchase nor a ticket.
    """
    try:
        decoded = base64.b64decode(raw.strip(), validate=True)
        data = json.loads(decoded.decode("utf-8"))
    except ValueError:
        # binascii.Error, UnicodeDecodeError and JSONDecodeError are all ValueErrors
        return None

    if not isinstance(data, dict):
        return None

    values = {}
    for field, keys in PAYLOAD_KEYS.items():
        values[field] = next(
            (_clean(data[key]) for key in keys if _clean(data.get(key))), None
        )

    identity = TicketIdentity(**values)
    if not identity.purchase_id and not identity.ticket_id:
        raise CorruptedPayload("Structured payload has no purchase or ticket id", raw_payload=raw)
    return identity


def encode_payload(identity: TicketIdentity) -> str:
    """Encode an identity as the structured payload printed in QR codes."""
    body = {
        "id_compra": identity.purchase_id,
        "id_evento": identity.event_id,
        "id_ingresso": identity.ticket_id,
        "email": identity.buyer_email,
    }
    return base64.b64encode(json.dumps(body, sort_keys=True).encode("utf-8")).decode("ascii")
