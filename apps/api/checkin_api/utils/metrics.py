"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

# Validation metrics
ticket_validations = Counter(
    "checkin_ticket_validations_total",
    "Total ticket validation attempts",
    ["status", "code"],
)

validation_duration = Histogram(
    "checkin_validation_duration_seconds",
    "Ticket validation duration",
)

# Ledger metrics
ledger_write_failures = Counter(
    "checkin_ledger_write_failures_total",
    "Check-in ledger entries that could not be persisted",
    ["status"],
)

# Auth metrics
auth_failures = Counter(
    "checkin_auth_failures_total",
    "Rejected bearer credentials",
    ["reason"],
)
