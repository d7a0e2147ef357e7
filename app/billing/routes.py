from flask import Blueprint, current_app, render_template
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.billing.db import db_session

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    return render_template("public/index.html")


@bp.get("/health")
def health():
    """Readiness: pings the invoice store. 503 when it is unreachable."""
    try:
        db_session().execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        current_app.logger.error("Health check DB ping failed: %s", e)
        return {"ok": False, "db": "unreachable"}, 503
    return {"ok": True, "db": "ok"}


@bp.get("/healthz")
def healthz():
    # liveness only; never touches the DB
    return "ok", 200
