"""
INVOICE MUTATIONS
=================

Every mutation runs the same sequence and stops at the first branch taken:

Step        | On failure                              | On success
------------|-----------------------------------------|---------------------------
validate    | FormState(field errors), no DB access   | typed InvoiceInput
persist     | rollback, "Database Error: ..." message | exactly one statement
revalidate  | -                                       | drop cached /dashboard/invoices pages
navigate    | -                                       | redirect (create/update) or message (delete)

INVARIANTS:
- amount is stored in cents and is always > 0 (checked on the cents value at validation)
- date is stamped once at create (UTC day) and never touched by update
- update/delete of an id that matches no row is a silent no-op
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from collections.abc import Mapping
from typing import Any

from sqlalchemy import String, case, cast, delete, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.billing.cache import ListingCache
from app.billing.errors import ErrorKind, FormState, MutationOutcome
from app.billing.models import new_id
from app.billing.modules.customers.models import Customer
from app.billing.modules.invoices.models import Invoice
from app.billing.validation import Failure, validate_invoice_form

logger = logging.getLogger(__name__)

INVOICES_PATH = "/dashboard/invoices"
ITEMS_PER_PAGE = 6


@dataclass(frozen=True)
class InvoiceRow:
    id: str
    customer_id: str
    name: str
    email: str
    image_url: str
    amount: int
    status: str
    date: str


@dataclass(frozen=True)
class CardData:
    number_of_invoices: int
    number_of_customers: int
    total_paid_invoices: int
    total_pending_invoices: int



def today_utc() -> date:
    return datetime.now(timezone.utc).date()


# ---------- Store ----------
def insert_invoice(s: Session, *, customer_id: str, amount: int, status: str, date: str) -> str:
    invoice_id = new_id()
    s.execute(
        insert(Invoice).values(id=invoice_id, customer_id=customer_id, amount=amount, status=status, date=date)
    )
    return invoice_id


def update_invoice_fields(s: Session, invoice_id: str, fields: Mapping[str, Any]) -> int:
    result = s.execute(update(Invoice).where(Invoice.id == invoice_id).values(**fields))
    return result.rowcount or 0


def delete_invoice_by_id(s: Session, invoice_id: str) -> int:
    result = s.execute(delete(Invoice).where(Invoice.id == invoice_id))
    return result.rowcount or 0


def get_invoice(s: Session, invoice_id: str) -> Invoice | None:
    return s.get(Invoice, invoice_id)


def _filtered(query: str, *columns):
    stmt = select(*(columns or (Invoice, Customer))).join(Customer, Invoice.customer_id == Customer.id)
    if query:
        like = f"%{query}%"
        stmt = stmt.where(
            or_(
                Customer.name.ilike(like),
                Customer.email.ilike(like),
                cast(Invoice.amount, String).ilike(like),
                Invoice.date.ilike(like),
                Invoice.status.ilike(like),
            )
        )
    return stmt


def query_filtered_invoices(s: Session, query: str, page: int) -> list[InvoiceRow]:
    page = max(page, 1)
    stmt = (
        _filtered(query)
        .order_by(Invoice.date.desc(), Invoice.id)
        .limit(ITEMS_PER_PAGE)
        .offset((page - 1) * ITEMS_PER_PAGE)
    )
    return [
        InvoiceRow(
            id=inv.id,
            customer_id=cust.id,
            name=cust.name,
            email=cust.email,
            image_url=cust.image_url,
            amount=inv.amount,
            status=inv.status,
            date=inv.date,
        )
        for inv, cust in s.execute(stmt).all()
    ]


def count_invoice_pages(s: Session, query: str) -> int:
    total = s.execute(_filtered(query, func.count(Invoice.id))).scalar_one()
    return math.ceil(total / ITEMS_PER_PAGE)


def fetch_latest_invoices(s: Session, limit: int = 5) -> list[InvoiceRow]:
    stmt = _filtered("").order_by(Invoice.date.desc(), Invoice.id).limit(limit)
    return [
        InvoiceRow(inv.id, cust.id, cust.name, cust.email, cust.image_url, inv.amount, inv.status, inv.date)
        for inv, cust in s.execute(stmt).all()
    ]


def fetch_card_data(s: Session) -> CardData:
    invoice_count = s.execute(select(func.count(Invoice.id))).scalar_one()
    customer_count = s.execute(select(func.count(Customer.id))).scalar_one()
    paid, pending = s.execute(
        select(
            func.coalesce(func.sum(case((Invoice.status == "paid", Invoice.amount), else_=0)), 0),
            func.coalesce(func.sum(case((Invoice.status == "pending", Invoice.amount), else_=0)), 0),
        )
    ).one()
    return CardData(
        number_of_invoices=invoice_count,
        number_of_customers=customer_count,
        total_paid_invoices=int(paid),
        total_pending_invoices=int(pending),
    )


# ---------- Workflow ----------
def _validation_failure(result: Failure) -> MutationOutcome:
    return MutationOutcome(
        state=FormState(errors=result.field_errors, message=result.message, kind=ErrorKind.VALIDATION)
    )


def _store_failure(s: Session, action: str) -> MutationOutcome:
    s.rollback()
    return MutationOutcome(state=FormState(message=f"Database Error: Failed to {action} Invoice.", kind=ErrorKind.STORE))


def create_invoice(
    s: Session,
    form: Mapping[str, Any],
    *,
    cache: ListingCache,
    today: date | None = None,
) -> MutationOutcome:
    result = validate_invoice_form(form, action="Create")
    if isinstance(result, Failure):
        return _validation_failure(result)

    data = result.data
    stamp = (today or today_utc()).isoformat()
    try:
        invoice_id = insert_invoice(
            s, customer_id=data.customer_id, amount=data.amount_cents, status=data.status, date=stamp
        )
        s.commit()
    except SQLAlchemyError:
        logger.exception("Invoice create failed (customer_id=%s)", data.customer_id)
        return _store_failure(s, "Create")

    logger.info("Invoice created id=%s customer_id=%s", invoice_id, data.customer_id)
    cache.revalidate_path(INVOICES_PATH)
    return MutationOutcome(redirect_to=INVOICES_PATH)


def update_invoice(s: Session, invoice_id: str, form: Mapping[str, Any], *, cache: ListingCache) -> MutationOutcome:
    result = validate_invoice_form(form, action="Update")
    if isinstance(result, Failure):
        return _validation_failure(result)

    data = result.data
    try:
        rows = update_invoice_fields(
            s,
            invoice_id,
            {"customer_id": data.customer_id, "amount": data.amount_cents, "status": data.status},
        )
        s.commit()
    except SQLAlchemyError:
        logger.exception("Invoice update failed (id=%s)", invoice_id)
        return _store_failure(s, "Update")

    logger.info("Invoice updated id=%s rows=%d", invoice_id, rows)
    cache.revalidate_path(INVOICES_PATH)
    return MutationOutcome(redirect_to=INVOICES_PATH)


def delete_invoice(s: Session, invoice_id: str, *, cache: ListingCache) -> MutationOutcome:
    try:
        rows = delete_invoice_by_id(s, invoice_id)
        s.commit()
    except SQLAlchemyError:
        logger.exception("Invoice delete failed (id=%s)", invoice_id)
        return _store_failure(s, "Delete")

    logger.info("Invoice deleted id=%s rows=%d", invoice_id, rows)
    cache.revalidate_path(INVOICES_PATH)
    return MutationOutcome(state=FormState(message="Deleted Invoice."))
