"""Tests for the check-in ledger."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from checkin_api.ledger.service import CheckinLedger
from checkin_api.models import CHECKIN_INVALID, CHECKIN_VALID, Checkin


def test_append_persists_entry(db: Session):
    ledger = CheckinLedger(db)
    entry = ledger.append(
        status=CHECKIN_INVALID,
        validated_by="user-1",
        purchase_id="P1",
        event_id="E1",
        ticket_id="T1",
        buyer_email="a@b.com",
        reason="Ingresso cancelado",
        qr_payload="P1",
        correlation_id="corr-1",
    )
    db.commit()

    stored = db.query(Checkin).filter(Checkin.id == entry.id).one()
    assert stored.status == CHECKIN_INVALID
    assert stored.reason == "Ingresso cancelado"
    assert stored.qr_payload == "P1"
    assert stored.created_at is not None


def test_valid_entries_have_no_reason(db: Session):
    entry = CheckinLedger(db).append(status=CHECKIN_VALID, validated_by="user-1", ticket_id="T1", reason="ignored")
    assert entry.reason is None


def test_unknown_status_rejected(db: Session):
    with pytest.raises(ValueError):
        CheckinLedger(db).append(status="maybe", validated_by="user-1")


def test_find_valid_by_purchase_or_ticket(db: Session):
    ledger = CheckinLedger(db)
    ledger.append(status=CHECKIN_INVALID, validated_by="u", purchase_id="P1", ticket_id="T1")
    assert ledger.find_valid_by_purchase_or_ticket("P1", "T1") is None

    valid = ledger.append(status=CHECKIN_VALID, validated_by="u", purchase_id="P1", ticket_id="T1")
    db.commit()

    assert ledger.find_valid_by_purchase_or_ticket("P1", None).id == valid.id
    assert ledger.find_valid_by_purchase_or_ticket(None, "T1").id == valid.id
    assert ledger.find_valid_by_purchase_or_ticket("other", "T1").id == valid.id
    assert ledger.find_valid_by_purchase_or_ticket("P2", "T2") is None
    assert ledger.find_valid_by_purchase_or_ticket(None, None) is None


def test_recent_is_newest_first_and_filtered(db: Session):
    now = datetime.utcnow()
    for index, event_id in enumerate(["E1", "E2", "E1"]):
        db.add(
            Checkin(
                id_evento=event_id,
                id_ingresso=f"T{index}",
                validated_by="u",
                status=CHECKIN_INVALID,
                created_at=now + timedelta(seconds=index),
            )
        )
    db.commit()

    ledger = CheckinLedger(db)
    assert [entry.id_ingresso for entry in ledger.recent()] == ["T2", "T1", "T0"]
    assert [entry.id_ingresso for entry in ledger.recent(event_id="E1")] == ["T2", "T0"]
    assert len(ledger.recent(limit=1)) == 1
