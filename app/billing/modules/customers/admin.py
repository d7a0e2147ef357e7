from __future__ import annotations

from flask import Blueprint, render_template, request

from app.billing.db import db_session
from app.billing.modules.customers.service import query_filtered_customers

bp = Blueprint("customers", __name__)


@bp.get("/customers")
def customers_list():
    query = (request.args.get("query") or "").strip()
    customers = query_filtered_customers(db_session(), query)
    return render_template("dashboard/customers/list.html", customers=customers, query=query)
