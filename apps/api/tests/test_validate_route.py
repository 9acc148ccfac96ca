"""Tests for POST /validate-ticket."""

import asyncio
import threading
import time
from unittest.mock import patch

import pytest

from checkin_api.models import CHECKIN_INVALID, CHECKIN_VALID, Checkin, Venda
from checkin_api.settings import Settings
from checkin_api.tickets.payload import TicketIdentity, encode_payload
from checkin_api.tickets.store import PurchaseLookup
from checkin_api.validation.engine import ValidationEngine

PAYLOAD = encode_payload(TicketIdentity(purchase_id="P1", event_id="E1", ticket_id="T1", buyer_email="a@b.com"))


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestAuthentication:
    """Credential failures are reported in the body, not the status code."""

    def test_missing_token(self, client):
        response = client.post("/validate-ticket", json={"qrPayload": PAYLOAD, "eventId": "E1"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "UNAUTHENTICATED"
        assert body["reason"] == "Não autorizado (sem token)"

    def test_non_bearer_scheme(self, client, make_token):
        response = client.post(
            "/validate-ticket",
            json={"qrPayload": PAYLOAD, "eventId": "E1"},
            headers={"Authorization": f"Basic {make_token()}"},
        )

        assert response.json()["reason"] == "Não autorizado (sem token)"

    @pytest.mark.parametrize(
        "token_kwargs",
        [
            {"secret": "another-secret"},
            {"expires_in": -60},
            {"aud": "someone-else"},
            {"sub": None},
        ],
    )
    def test_rejected_token(self, client, db, make_sale, make_token, token_kwargs):
        make_sale()

        response = client.post(
            "/validate-ticket",
            json={"qrPayload": PAYLOAD, "eventId": "E1"},
            headers=_auth(make_token(**token_kwargs)),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["reason"] == "Não autorizado (token inválido)"
        assert db.query(Checkin).count() == 0


class TestValidateTicket:
    """Test the validation endpoint end to end."""

    def test_valid_ticket(self, client, db, make_sale, make_token, test_event):
        make_sale()

        response = client.post(
            "/validate-ticket",
            json={"qrPayload": PAYLOAD, "eventId": "E1"},
            headers={**_auth(make_token(sub="operador-7")), "X-Correlation-ID": "scan-42"},
        )

        assert response.status_code == 200
        assert response.headers["x-correlation-id"] == "scan-42"
        body = response.json()
        assert body["status"] == "valid"
        assert body["data"]["ticket_id"] == "T1"
        assert body["data"]["event_name"] == "Festival de Inverno"
        entry = db.query(Checkin).filter(Checkin.status == CHECKIN_VALID).one()
        assert entry.validated_by == "operador-7"
        assert entry.correlation_id == "scan-42"

    def test_second_scan_is_invalid_with_200(self, client, make_sale, make_token):
        make_sale()
        headers = _auth(make_token())

        client.post("/validate-ticket", json={"qrPayload": PAYLOAD, "eventId": "E1"}, headers=headers)
        response = client.post("/validate-ticket", json={"qrPayload": PAYLOAD, "eventId": "E1"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["status"] == "invalid"
        assert response.json()["reason"] == "Ingresso já foi bipado"

    @pytest.mark.parametrize(
        "body",
        [{"qrPayload": PAYLOAD}, {"eventId": "E1"}, {"qrPayload": "", "eventId": "E1"}, {}],
    )
    def test_missing_fields(self, client, db, make_token, body):
        response = client.post("/validate-ticket", json=body, headers=_auth(make_token()))

        assert response.status_code == 200
        assert response.json()["status"] == "invalid"
        assert response.json()["code"] == "MISSING_FIELDS"
        assert db.query(Checkin).count() == 0

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"qrPayload": 5, "eventId": []}'])
    def test_malformed_body(self, client, make_token, raw):
        response = client.post(
            "/validate-ticket",
            content=raw,
            headers={**_auth(make_token()), "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json()["code"] == "MISSING_FIELDS"

    def test_unexpected_error(self, client, make_token):
        with patch("checkin_api.routes.validation.ValidationEngine") as engine_cls:
            engine_cls.return_value.validate.side_effect = RuntimeError("boom")
            response = client.post(
                "/validate-ticket",
                json={"qrPayload": PAYLOAD, "eventId": "E1"},
                headers=_auth(make_token()),
            )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "INTERNAL_ERROR"
        assert body["reason"] == "Erro interno do servidor"

    def test_timeout(self, client, make_token):
        async def _stalled(*args, **kwargs):
            await asyncio.sleep(5)

        with patch(
            "checkin_api.routes.validation.get_settings",
            return_value=Settings(validation_timeout_seconds=0.05),
        ), patch("checkin_api.routes.validation.run_in_threadpool", side_effect=_stalled):
            response = client.post(
                "/validate-ticket",
                json={"qrPayload": PAYLOAD, "eventId": "E1"},
                headers=_auth(make_token()),
            )

        assert response.status_code == 200
        assert response.json()["status"] == "error"
        assert response.json()["code"] == "TIMEOUT"

    def test_timed_out_validation_never_redeems(self, client, db, make_sale, make_token):
        make_sale()
        finished = threading.Event()

        class _TrackedEngine(ValidationEngine):
            def validate(self, *args, **kwargs):
                try:
                    return super().validate(*args, **kwargs)
                finally:
                    finished.set()

        def _slow_purchase_lookup(self, ticket_id=None, purchase_id=None):
            time.sleep(0.5)
            return None

        with patch(
            "checkin_api.routes.validation.get_settings",
            return_value=Settings(validation_timeout_seconds=0.1),
        ), patch("checkin_api.routes.validation.ValidationEngine", _TrackedEngine), patch.object(
            PurchaseLookup, "try_find", _slow_purchase_lookup
        ):
            response = client.post(
                "/validate-ticket",
                json={"qrPayload": PAYLOAD, "eventId": "E1"},
                headers=_auth(make_token()),
            )
            assert finished.wait(timeout=5)

        assert response.status_code == 200
        assert response.json()["code"] == "TIMEOUT"
        db.expire_all()
        assert db.query(Venda).filter(Venda.id == "V1").one().status == "confirmado"
        entries = db.query(Checkin).all()
        assert [(entry.status, entry.reason) for entry in entries] == [
            (CHECKIN_INVALID, "Tempo limite de validação excedido")
        ]
