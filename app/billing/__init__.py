import logging
from datetime import timedelta
from urllib.parse import urlencode

from flask import Flask, g, redirect, render_template, request, session
from dotenv import load_dotenv

from app.billing.config import load_config
from app.billing.db import init_db, teardown_db_session
from app.billing.auth import bp as auth_bp, load_current_user
from app.billing.routes import bp as routes_bp
from app.billing.admin import bp as dashboard_bp
from app.billing.cache import ListingCache
from app.billing.errors import classify
from app.billing.gate import GateAction, GateConfig, authorize, is_excluded
from app.billing.modules.customers.admin import bp as customers_bp
from app.billing.modules.invoices.admin import bp as invoices_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    app.extensions["auth_gate"] = GateConfig()
    app.extensions["listing_cache"] = ListingCache(
        app.config["LISTING_CACHE_DIR"],
        enabled=app.config["LISTING_CACHE_ENABLED"],
        expire=app.config["LISTING_CACHE_TTL"],
    )

    from app.billing.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_user() -> dict:
        return {"current_user": getattr(g, "current_user", None)}

    @app.template_filter("currency")
    def _currency_filter(cents) -> str:
        if cents is None:
            return "—"
        return f"${cents / 100:,.2f}"

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%b %d, %Y") -> str:
        if value is None:
            return "—"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        from datetime import date

        try:
            return date.fromisoformat(str(value)).strftime(format)
        except ValueError:
            return str(value)

    def _load_user_wrapper():
        if is_excluded(request.path, app.extensions["auth_gate"]):
            g.current_user = None
            return None
        return load_current_user()

    @app.before_request
    def _auth_gate():
        gate: GateConfig = app.extensions["auth_gate"]
        if is_excluded(request.path, gate):
            return None
        decision = authorize(getattr(g, "current_user", None) is not None, request.path, gate)
        if decision.action is GateAction.DENY:
            nxt = request.full_path.rstrip("?")
            return redirect(f"{decision.location}?{urlencode({'next': nxt})}")
        if decision.action is GateAction.REDIRECT:
            return redirect(decision.location)
        return None

    @app.before_request
    def _csrf_guard():
        if is_excluded(request.path, app.extensions["auth_gate"]):
            return None
        session.permanent = True
        if not app.config.get("CSRF_ENABLED"):
            return None
        ensure_csrf_token()
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Sign-in and sign-up pages are reachable before a session exists.
            if request.endpoint in ("auth.login_post", "auth.signup_post"):
                return None
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp, url_prefix="/dashboard")
    app.register_blueprint(invoices_bp, url_prefix="/dashboard")
    app.register_blueprint(customers_bp, url_prefix="/dashboard")

    # Loader must run ahead of the gate and CSRF hooks.
    app.before_request_funcs.setdefault(None, []).insert(0, _load_user_wrapper)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        original = getattr(e, "original_exception", None) or e
        app.logger.exception(
            "Unhandled 500 (kind=%s request_id=%s)",
            classify(original).value,
            getattr(g, "request_id", None),
        )
        return render_template("errors/500.html"), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
