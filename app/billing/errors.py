from __future__ import annotations

import enum
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError


class ErrorKind(enum.Enum):
    VALIDATION = "validation"
    STORE = "store"
    DUPLICATE = "duplicate"
    AUTHENTICATION = "authentication"
    UNCLASSIFIED = "unclassified"


class AuthError(Exception):
    """
    Sign-in failure. `type` mirrors the provider error names:
    "CredentialsSignin" for a bad email/password pair, anything else
    (e.g. "CallbackRouteError") for a failure while checking credentials.
    """

    CREDENTIALS_SIGNIN = "CredentialsSignin"
    CALLBACK_ROUTE_ERROR = "CallbackRouteError"

    def __init__(self, type: str, message: str | None = None) -> None:
        super().__init__(message or type)
        self.type = type


def classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, AuthError):
        return ErrorKind.AUTHENTICATION
    if isinstance(exc, SQLAlchemyError):
        return ErrorKind.STORE
    return ErrorKind.UNCLASSIFIED


@dataclass
class FormState:
    """What a failed (or message-only) mutation hands back to the form."""

    errors: dict[str, list[str]] = field(default_factory=dict)
    message: str | None = None
    kind: ErrorKind | None = None


@dataclass(frozen=True)
class MutationOutcome:
    state: FormState | None = None
    redirect_to: str | None = None
