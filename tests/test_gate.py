"""Tests for the session/authorization gate decision table."""
import pytest

from app.billing.gate import GateAction, GateConfig, authorize, is_excluded

CFG = GateConfig()


@pytest.mark.parametrize("path", ["/dashboard", "/dashboard/invoices", "/customers", "/invoices/abc/edit"])
def test_protected_without_session_is_denied(path):
    decision = authorize(False, path, CFG)
    assert decision.action is GateAction.DENY
    assert decision.location == "/login"
    assert not decision.allowed


@pytest.mark.parametrize("path", ["/dashboard", "/dashboard/customers", "/invoices"])
def test_protected_with_session_is_allowed(path):
    assert authorize(True, path, CFG).allowed


@pytest.mark.parametrize("path", ["/login", "/signup", "/"])
def test_public_page_with_session_redirects_home(path):
    decision = authorize(True, path, CFG)
    assert decision.action is GateAction.REDIRECT
    assert decision.location == "/dashboard"


@pytest.mark.parametrize("path", ["/login", "/signup", "/"])
def test_public_page_without_session_is_allowed(path):
    assert authorize(False, path, CFG).allowed


@pytest.mark.parametrize(
    "path,excluded",
    [
        ("/api/auth/session", True),
        ("/static/app.css", True),
        ("/_image/logo.png", True),
        ("/favicon.ico", True),
        ("/healthz", True),
        ("/dashboard", False),
        ("/login", False),
    ],
)
def test_exclusion_list(path, excluded):
    assert is_excluded(path, CFG) is excluded


def test_custom_config_is_honored():
    cfg = GateConfig(protected_prefixes=("/admin",), login_path="/auth/login", home_path="/admin")
    assert authorize(False, "/admin/x", cfg).location == "/auth/login"
    assert authorize(False, "/dashboard", cfg).allowed
    assert authorize(True, "/dashboard", cfg).location == "/admin"
