"""
Session/authorization gate.

`authorize()` is a pure function of (session present?, request path). The
app factory builds one `GateConfig` at startup and the `before_request` hook
applies the decision; nothing here reads Flask globals.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass


class GateAction(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GateConfig:
    protected_prefixes: tuple[str, ...] = ("/dashboard", "/customers", "/invoices")
    # These never reach the gate (API routes, static assets, image assets, favicon, probes).
    excluded_prefixes: tuple[str, ...] = ("/api", "/static", "/_image", "/favicon.ico", "/health", "/healthz")
    login_path: str = "/login"
    home_path: str = "/dashboard"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    location: str | None = None

    @property
    def allowed(self) -> bool:
        return self.action is GateAction.ALLOW


def is_excluded(path: str, config: GateConfig) -> bool:
    return path.startswith(config.excluded_prefixes)


def is_protected(path: str, config: GateConfig) -> bool:
    return path.startswith(config.protected_prefixes)


def authorize(has_session: bool, path: str, config: GateConfig) -> GateDecision:
    if is_protected(path, config):
        if has_session:
            return GateDecision(GateAction.ALLOW)
        return GateDecision(GateAction.DENY, location=config.login_path)
    if has_session:
        # Signed-in users have no business on public-only pages (login, signup, landing).
        return GateDecision(GateAction.REDIRECT, location=config.home_path)
    return GateDecision(GateAction.ALLOW)
