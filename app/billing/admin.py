from __future__ import annotations

from flask import Blueprint, render_template

from app.billing.db import db_session
from app.billing.modules.invoices.service import fetch_card_data, fetch_latest_invoices

bp = Blueprint("dashboard", __name__)


@bp.get("")
def index():
    s = db_session()
    return render_template(
        "dashboard/index.html",
        cards=fetch_card_data(s),
        latest_invoices=fetch_latest_invoices(s),
    )
