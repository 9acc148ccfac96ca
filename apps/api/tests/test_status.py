"""Tests for sale status normalization."""

import pytest

from checkin_api.settings import Settings
from checkin_api.tickets.status import StatusTable, TicketState, normalize_status


@pytest.fixture
def table():
    return StatusTable.from_settings(Settings())


class TestStatusTable:
    """Test status classification."""

    @pytest.mark.parametrize("raw", [None, "", "   ", "confirmado", "PAGO", " Active ", "válido"])
    def test_unredeemed(self, table, raw):
        assert table.classify(raw) is TicketState.UNREDEEMED

    @pytest.mark.parametrize("raw", ["utilizado", "USED", "usado", "check-in", "checkin", " Utilizado "])
    def test_used(self, table, raw):
        assert table.classify(raw) is TicketState.USED

    @pytest.mark.parametrize("raw", ["cancelado", "Cancelled", "cancel"])
    def test_cancelled(self, table, raw):
        assert table.classify(raw) is TicketState.CANCELLED

    def test_unrecognized_text_is_unknown(self, table):
        assert table.classify("reembolsado") is TicketState.UNKNOWN

    def test_terminal_contains_used_and_cancelled(self, table):
        assert "utilizado" in table.terminal
        assert "cancelado" in table.terminal
        assert "confirmado" not in table.terminal

    def test_payment_unconfirmed_only_for_explicit_status(self, table):
        assert table.is_payment_unconfirmed("pending") is True
        assert table.is_payment_unconfirmed("Paid") is False
        assert table.is_payment_unconfirmed(None) is False
        assert table.is_payment_unconfirmed("") is False


def test_synonyms_come_from_settings():
    settings = Settings(used_statuses=["redeemed"], cancelled_statuses=["void"])
    table = StatusTable.from_settings(settings)
    assert table.classify("REDEEMED") is TicketState.USED
    assert table.classify("void") is TicketState.CANCELLED
    assert table.classify("utilizado") is TicketState.UNKNOWN


def test_normalize_status_uses_given_table():
    table = StatusTable.from_settings(Settings(used_statuses=["done"]))
    assert normalize_status("done", table) is TicketState.USED
