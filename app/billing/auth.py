from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping, MutableMapping
from typing import Any

from flask import Blueprint, current_app, g, redirect, render_template, request, session, url_for
from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.billing.db import db_session
from app.billing.errors import AuthError, ErrorKind
from app.billing.models import User, new_id
from app.billing.security import hash_password, verify_password
from app.billing.validation import Failure, is_valid_email, validate_registration_form

bp = Blueprint("auth", __name__)
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MSG = "Invalid credentials."
SOMETHING_WENT_WRONG_MSG = "Something went wrong."
USER_EXISTS_MSG = "User already exists."
REGISTER_DB_ERROR_MSG = "Database Error: Failed to Register."


def _normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------- Credential store ----------
def find_user_by_email(s: Session, email: str) -> User | None:
    return s.execute(select(User).where(User.email == _normalize_email(email))).scalar_one_or_none()


def insert_user(s: Session, *, user_id: str, name: str, email: str, password_hash: str) -> int:
    result = s.execute(
        insert(User).values(id=user_id, name=name, email=_normalize_email(email), password=password_hash)
    )
    return result.rowcount or 0


# ---------- Sign-in / sign-out ----------
def sign_in(s: Session, sess: MutableMapping[str, Any], email: Any, password: Any) -> User:
    """
    Verify credentials and attach the user to the session.
    Raises AuthError("CredentialsSignin") on a bad pair and
    AuthError("CallbackRouteError") if the credential lookup itself fails.
    """
    if not isinstance(email, str) or not isinstance(password, str):
        raise AuthError(AuthError.CREDENTIALS_SIGNIN)
    if not is_valid_email(email.strip()) or len(password) < 6:
        raise AuthError(AuthError.CREDENTIALS_SIGNIN)

    try:
        user = find_user_by_email(s, email)
    except SQLAlchemyError as e:
        logger.exception("Credential lookup failed")
        raise AuthError(AuthError.CALLBACK_ROUTE_ERROR) from e

    if user is None or not verify_password(user.password, password):
        logger.warning("Sign-in rejected (email=%s)", _normalize_email(email))
        raise AuthError(AuthError.CREDENTIALS_SIGNIN)

    sess.pop("user_id", None)
    sess["user_id"] = user.id
    logger.info("Signed in user_id=%s", user.id)
    return user


def sign_out(sess: MutableMapping[str, Any]) -> None:
    sess.pop("user_id", None)


def _auth_error_message(e: AuthError) -> str:
    if e.type == AuthError.CREDENTIALS_SIGNIN:
        return INVALID_CREDENTIALS_MSG
    return SOMETHING_WENT_WRONG_MSG


def authenticate(s: Session, sess: MutableMapping[str, Any], form: Mapping[str, Any]) -> str | None:
    """Returns None on success, or the message to show. Non-auth errors propagate."""
    try:
        sign_in(s, sess, form.get("email"), form.get("password"))
    except AuthError as e:
        return _auth_error_message(e)
    return None


def register(
    s: Session,
    sess: MutableMapping[str, Any],
    form: Mapping[str, Any],
    *,
    hash_method: str,
) -> str | None:
    """
    Create the account, then sign straight in with the same credentials.
    Returns None on success, otherwise the message to show.
    """
    result = validate_registration_form(form)
    if isinstance(result, Failure):
        logger.info("Registration rejected (kind=%s): %s", ErrorKind.VALIDATION.value, sorted(result.field_errors))
        return result.message

    data = result.data
    try:
        if find_user_by_email(s, data.email) is not None:
            logger.info("Registration rejected (kind=%s)", ErrorKind.DUPLICATE.value)
            return USER_EXISTS_MSG

        rows = insert_user(
            s,
            user_id=new_id(),
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password, hash_method),
        )
        if not rows:
            s.rollback()
            return REGISTER_DB_ERROR_MSG
        s.commit()
    except SQLAlchemyError:
        logger.exception("Registration insert failed")
        s.rollback()
        return REGISTER_DB_ERROR_MSG

    try:
        sign_in(s, sess, data.email, data.password)
    except AuthError as e:
        return _auth_error_message(e)
    return None


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    try:
        user = db_session().get(User, str(user_id))
    except SQLAlchemyError as e:
        current_app.logger.error("load_current_user DB error (clearing session): %s", e)
        user = None
    if user is None:
        session.pop("user_id", None)
    g.current_user = user


def _safe_next(nxt: str) -> str | None:
    # Only allow local paths to avoid open redirects.
    if nxt.startswith("/") and not nxt.startswith("//"):
        return nxt
    return None


# ---------- Routes ----------
@bp.get("/login")
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", next=nxt, error=None)


@bp.post("/login")
def login_post():
    nxt = (request.form.get("next") or "").strip()
    error = authenticate(db_session(), session, request.form)
    if error:
        return render_template("auth/login.html", next=nxt, error=error, email=request.form.get("email") or ""), 401
    return redirect(_safe_next(nxt) or url_for("dashboard.index"))


@bp.get("/signup")
def signup_get():
    return render_template("auth/signup.html", error=None)


@bp.post("/signup")
def signup_post():
    error = register(
        db_session(),
        session,
        request.form,
        hash_method=current_app.config["PASSWORD_HASH_METHOD"],
    )
    if error:
        return render_template("auth/signup.html", error=error, form=request.form), 400
    return redirect(url_for("dashboard.index"))


@bp.post("/dashboard/logout")
def logout():
    sign_out(session)
    return redirect(url_for("routes.index"))
