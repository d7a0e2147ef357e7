from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from app.billing.cache import listing_cache, listing_key
from app.billing.db import db_session
from app.billing.errors import FormState
from app.billing.modules.customers.service import list_customers
from app.billing.modules.invoices.service import (
    INVOICES_PATH,
    count_invoice_pages,
    create_invoice,
    delete_invoice,
    get_invoice,
    query_filtered_invoices,
    update_invoice,
)

bp = Blueprint("invoices", __name__)


def _page_arg() -> int:
    try:
        page = int(request.args.get("page") or "1")
    except ValueError:
        page = 1
    return max(page, 1)


def _form_values() -> dict[str, str | None]:
    return {
        "customerId": request.form.get("customerId"),
        "amount": request.form.get("amount"),
        "status": request.form.get("status"),
    }


# ---------- List ----------
@bp.get("/invoices")
def invoices_list():
    query = (request.args.get("query") or "").strip()
    page = _page_arg()

    def _load() -> tuple[list, int]:
        s = db_session()
        return query_filtered_invoices(s, query, page), count_invoice_pages(s, query)

    key = listing_key(INVOICES_PATH, query=query, page=page)
    invoices, total_pages = listing_cache().get_or_load(key, _load)
    return render_template(
        "dashboard/invoices/list.html",
        invoices=invoices,
        total_pages=total_pages,
        query=query,
        page=page,
    )


# ---------- Create ----------
@bp.get("/invoices/create")
def invoices_create_get():
    return render_template(
        "dashboard/invoices/form.html",
        customers=list_customers(db_session()),
        invoice=None,
        state=FormState(),
        values={},
    )


@bp.post("/invoices/create")
def invoices_create_post():
    s = db_session()
    values = _form_values()
    outcome = create_invoice(s, values, cache=listing_cache())
    if outcome.redirect_to:
        return redirect(outcome.redirect_to)
    return render_template(
        "dashboard/invoices/form.html",
        customers=list_customers(s),
        invoice=None,
        state=outcome.state,
        values=values,
    ), 400


# ---------- Edit ----------
@bp.get("/invoices/<invoice_id>/edit")
def invoices_edit_get(invoice_id: str):
    s = db_session()
    invoice = get_invoice(s, invoice_id)
    if not invoice:
        abort(404)
    return render_template(
        "dashboard/invoices/form.html",
        customers=list_customers(s),
        invoice=invoice,
        state=FormState(),
        values={"customerId": invoice.customer_id, "amount": f"{invoice.amount / 100:.2f}", "status": invoice.status},
    )


@bp.post("/invoices/<invoice_id>/edit")
def invoices_edit_post(invoice_id: str):
    s = db_session()
    values = _form_values()
    outcome = update_invoice(s, invoice_id, values, cache=listing_cache())
    if outcome.redirect_to:
        return redirect(outcome.redirect_to)
    return render_template(
        "dashboard/invoices/form.html",
        customers=list_customers(s),
        invoice=get_invoice(s, invoice_id),
        state=outcome.state,
        values=values,
    ), 400


# ---------- Delete ----------
@bp.post("/invoices/<invoice_id>/delete")
def invoices_delete(invoice_id: str):
    outcome = delete_invoice(db_session(), invoice_id, cache=listing_cache())
    state = outcome.state
    if state and state.message:
        flash(state.message, "danger" if state.kind else "success")
    return redirect(url_for("invoices.invoices_list"))
