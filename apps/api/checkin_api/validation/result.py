"""Validation outcome taxonomy and response model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ResultStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    ERROR = "error"


class OutcomeCode(str, Enum):
    """Machine-readable outcome of one validation attempt."""

    VALID = "VALID"
    MISSING_FIELDS = "MISSING_FIELDS"
    NOT_FOUND = "NOT_FOUND"
    CORRUPTED = "CORRUPTED"
    AMBIGUOUS = "AMBIGUOUS"
    EVENT_MISMATCH = "EVENT_MISMATCH"
    ALREADY_SCANNED = "ALREADY_SCANNED"
    ALREADY_USED = "ALREADY_USED"
    CANCELLED = "CANCELLED"
    INVALID_STATUS = "INVALID_STATUS"
    PAYMENT_UNCONFIRMED = "PAYMENT_UNCONFIRMED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TIMEOUT = "TIMEOUT"


# Operator-facing messages
REASONS = {
    OutcomeCode.VALID: "Ingresso válido",
    OutcomeCode.MISSING_FIELDS: "QR Code ou evento não fornecido",
    OutcomeCode.NOT_FOUND: "Ingresso não encontrado na tabela vendas",
    OutcomeCode.CORRUPTED: "QR Code inválido ou corrompido",
    OutcomeCode.AMBIGUOUS: "Identificador ambíguo: mais de um registro encontrado",
    OutcomeCode.EVENT_MISMATCH: "Ingresso não pertence a este evento",
    OutcomeCode.ALREADY_SCANNED: "Ingresso já foi bipado",
    OutcomeCode.ALREADY_USED: "Ingresso já foi utilizado",
    OutcomeCode.CANCELLED: "Ingresso cancelado",
    OutcomeCode.PAYMENT_UNCONFIRMED: "Pagamento não confirmado",
    OutcomeCode.UNAUTHENTICATED: "Não autorizado (token inválido)",
    OutcomeCode.INTERNAL_ERROR: "Erro interno do servidor",
    OutcomeCode.TIMEOUT: "Tempo limite de validação excedido",
}

CONCURRENT_REDEMPTION_REASON = "Ingresso já foi utilizado (validação simultânea)"
MISSING_TOKEN_REASON = "Não autorizado (sem token)"


def not_found_in_system_reason(scanned_id: str) -> str:
    return f"Ingresso não encontrado no sistema. ID procurado: {scanned_id}."


def invalid_status_reason(raw_status: str) -> str:
    return f"Status inválido: {raw_status}"


class ValidationResponse(BaseModel):
    """Body returned by ``POST /validate-ticket``."""

    status: ResultStatus
    code: OutcomeCode
    reason: Optional[str] = None
    data: Optional[dict] = Field(default=None, description="Echoed and enriched ticket identity")

    @classmethod
    def valid(cls, data: dict) -> "ValidationResponse":
        return cls(
            status=ResultStatus.VALID,
            code=OutcomeCode.VALID,
            reason=REASONS[OutcomeCode.VALID],
            data=data,
        )

    @classmethod
    def invalid(
        cls, code: OutcomeCode, reason: Optional[str] = None, data: Optional[dict] = None
    ) -> "ValidationResponse":
        return cls(
            status=ResultStatus.INVALID,
            code=code,
            reason=reason or REASONS[code],
            data=data,
        )

    @classmethod
    def error(cls, code: OutcomeCode = OutcomeCode.INTERNAL_ERROR, reason: Optional[str] = None) -> "ValidationResponse":
        return cls(status=ResultStatus.ERROR, code=code, reason=reason or REASONS[code])

    def to_body(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
