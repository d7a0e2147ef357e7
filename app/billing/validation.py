"""
Form validation for the dashboard mutations.

Each validator takes the raw submitted values (strings, possibly missing) and
returns either `Success(data)` with typed values or `Failure(field_errors,
message)`. Validators never touch the database.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

INVOICE_STATUSES = ("pending", "paid")

CUSTOMER_REQUIRED_MSG = "Please select a customer."
AMOUNT_POSITIVE_MSG = "Amount must be greater than $0."
AMOUNT_NAN_MSG = "Expected number, received nan"
AMOUNT_TOO_LARGE_MSG = "Amount must be at most $21,474,836.47."
STATUS_MSG = "Please select an invoice status."
REGISTER_FAILED_MSG = "Missing Fields. Failed to Register."

# invoices.amount is a 32-bit INTEGER column of cents
MAX_AMOUNT_CENTS = 2_147_483_647

_EMAIL_RE = re.compile(r"^(?!\.)(?!.*\.\.)([A-Za-z0-9_'+\-.]*)[A-Za-z0-9_+\-]@([A-Za-z0-9][A-Za-z0-9\-]*\.)+[A-Za-z]{2,}$")


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Failure:
    field_errors: dict[str, list[str]]
    message: str
    ok: bool = field(default=False, init=False)


ValidationResult = Union[Success[T], Failure]


@dataclass(frozen=True)
class InvoiceInput:
    customer_id: str
    amount_cents: int
    status: str


@dataclass(frozen=True)
class RegistrationInput:
    email: str
    password: str
    name: str


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def _coerce_number(raw: Any) -> float:
    """Missing/blank coerces to 0; anything unparseable becomes NaN."""
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, (int, float)):
        return float(raw)
    text = str(raw).strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return math.nan


def validate_invoice_form(form: Mapping[str, Any], *, action: str = "Create") -> ValidationResult[InvoiceInput]:
    """Validate customerId/amount/status. `action` only shapes the summary message."""
    errors: dict[str, list[str]] = {}

    customer_id = form.get("customerId")
    if not isinstance(customer_id, str) or not customer_id.strip():
        errors.setdefault("customerId", []).append(CUSTOMER_REQUIRED_MSG)

    amount = _coerce_number(form.get("amount"))
    cents = 0
    if not math.isfinite(amount):
        errors.setdefault("amount", []).append(AMOUNT_NAN_MSG)
    elif amount * 100 >= MAX_AMOUNT_CENTS + 0.5:
        errors.setdefault("amount", []).append(AMOUNT_TOO_LARGE_MSG)
    else:
        # judged on the stored cents, so 0.004 fails like 0
        cents = to_cents(amount) if amount > 0 else 0
        if cents <= 0:
            errors.setdefault("amount", []).append(AMOUNT_POSITIVE_MSG)

    status = form.get("status")
    if status not in INVOICE_STATUSES:
        errors.setdefault("status", []).append(STATUS_MSG)

    if errors:
        return Failure(field_errors=errors, message=f"Missing Fields. Failed to {action} Invoice.")
    return Success(InvoiceInput(customer_id=customer_id.strip(), amount_cents=cents, status=status))


def _min_length(errors: dict[str, list[str]], name: str, value: Any, n: int) -> None:
    if not isinstance(value, str):
        errors.setdefault(name, []).append(f"Expected string, received {'null' if value is None else type(value).__name__}")
    elif len(value) < n:
        errors.setdefault(name, []).append(f"String must contain at least {n} character(s)")


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def validate_registration_form(form: Mapping[str, Any]) -> ValidationResult[RegistrationInput]:
    errors: dict[str, list[str]] = {}

    email = form.get("email")
    if not isinstance(email, str):
        errors.setdefault("email", []).append("Expected string, received null")
    elif not is_valid_email(email):
        errors.setdefault("email", []).append("Invalid email")

    password = form.get("password")
    _min_length(errors, "password", password, 6)

    name = form.get("name")
    _min_length(errors, "name", name, 2)

    if errors:
        return Failure(field_errors=errors, message=REGISTER_FAILED_MSG)
    return Success(RegistrationInput(email=email, password=password, name=name))
