from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from app.billing.modules.customers.models import Customer
from app.billing.modules.invoices.models import Invoice


@dataclass(frozen=True)
class CustomerChoice:
    id: str
    name: str


@dataclass(frozen=True)
class CustomerSummary:
    id: str
    name: str
    email: str
    image_url: str
    total_invoices: int
    total_pending: int  # cents
    total_paid: int  # cents


def list_customers(s: Session) -> list[CustomerChoice]:
    """Customers for the invoice form dropdown, alphabetical."""
    rows = s.execute(select(Customer.id, Customer.name).order_by(Customer.name.asc())).all()
    return [CustomerChoice(id=r.id, name=r.name) for r in rows]


def query_filtered_customers(s: Session, query: str) -> list[CustomerSummary]:
    stmt = (
        select(
            Customer.id,
            Customer.name,
            Customer.email,
            Customer.image_url,
            func.count(Invoice.id).label("total_invoices"),
            func.coalesce(func.sum(case((Invoice.status == "pending", Invoice.amount), else_=0)), 0).label("total_pending"),
            func.coalesce(func.sum(case((Invoice.status == "paid", Invoice.amount), else_=0)), 0).label("total_paid"),
        )
        .outerjoin(Invoice, Invoice.customer_id == Customer.id)
        .group_by(Customer.id, Customer.name, Customer.email, Customer.image_url)
        .order_by(Customer.name.asc())
    )
    if query:
        like = f"%{query}%"
        stmt = stmt.where(or_(Customer.name.ilike(like), Customer.email.ilike(like)))

    return [
        CustomerSummary(
            id=r.id,
            name=r.name,
            email=r.email,
            image_url=r.image_url,
            total_invoices=int(r.total_invoices or 0),
            total_pending=int(r.total_pending or 0),
            total_paid=int(r.total_paid or 0),
        )
        for r in s.execute(stmt).all()
    ]
