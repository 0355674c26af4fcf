"""Auth error taxonomy and result types, with user-facing messages.

Resolvers and the credential verifier return ``Ok`` / ``Err`` values instead
of raising across the Session API. Exceptions are kept for configuration and
programmer errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError, ProgrammingError

from hotelhub.core.config import get_settings

T = TypeVar("T")


class AuthErrorKind(StrEnum):
    CONNECTION_ERROR = "ConnectionError"
    SCHEMA_ERROR = "SchemaError"
    INVALID_CREDENTIALS = "InvalidCredentials"
    EMAIL_UNCONFIRMED = "EmailUnconfirmed"
    RATE_LIMITED = "RateLimited"
    PROFILE_NOT_FOUND = "ProfileNotFound"
    ACCOUNT_DISABLED = "AccountDisabled"
    EMAIL_IN_USE = "EmailInUse"
    UNEXPECTED_ERROR = "UnexpectedError"


# ── Localized messages ───────────────────────────────────────

MESSAGES: dict[str, dict[AuthErrorKind, str]] = {
    "pt-BR": {
        AuthErrorKind.CONNECTION_ERROR: "Serviço indisponível. Verifique sua conexão e tente novamente.",
        AuthErrorKind.SCHEMA_ERROR: "O banco de dados não está configurado. Contate o suporte.",
        AuthErrorKind.INVALID_CREDENTIALS: "Email ou senha incorretos",
        AuthErrorKind.EMAIL_UNCONFIRMED: "Email não confirmado. Verifique sua caixa de entrada.",
        AuthErrorKind.RATE_LIMITED: "Muitas tentativas. Tente novamente em alguns minutos.",
        AuthErrorKind.PROFILE_NOT_FOUND: "Perfil de usuário não encontrado. Contate o suporte.",
        AuthErrorKind.ACCOUNT_DISABLED: "Conta desativada. Contate o administrador.",
        AuthErrorKind.EMAIL_IN_USE: "Email já cadastrado. Tente fazer login ou use outro email.",
        AuthErrorKind.UNEXPECTED_ERROR: "Erro de autenticação. Tente novamente.",
    },
    "en": {
        AuthErrorKind.CONNECTION_ERROR: "Service unavailable. Check your connection and try again.",
        AuthErrorKind.SCHEMA_ERROR: "The database is not set up. Please contact support.",
        AuthErrorKind.INVALID_CREDENTIALS: "Invalid email or password",
        AuthErrorKind.EMAIL_UNCONFIRMED: "Email not confirmed. Please check your inbox.",
        AuthErrorKind.RATE_LIMITED: "Too many attempts. Try again in a few minutes.",
        AuthErrorKind.PROFILE_NOT_FOUND: "User profile not found. Please contact support.",
        AuthErrorKind.ACCOUNT_DISABLED: "This account is disabled. Contact your administrator.",
        AuthErrorKind.EMAIL_IN_USE: "Email already registered. Sign in or use another email.",
        AuthErrorKind.UNEXPECTED_ERROR: "Authentication error. Please try again.",
    },
}

DEFAULT_LOCALE = "pt-BR"


def message_for(kind: AuthErrorKind, locale: str | None = None) -> str:
    locale = locale or get_settings().locale
    catalog = MESSAGES.get(locale) or MESSAGES[DEFAULT_LOCALE]
    return catalog[kind]


@dataclass(frozen=True)
class AuthError:
    """A classified failure. ``detail`` is for logs, ``message`` for humans."""
    kind: AuthErrorKind
    detail: str = ""
    code: str | None = None

    @property
    def message(self) -> str:
        return message_for(self.kind)


# ── Result types ─────────────────────────────────────────────

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: AuthError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> AuthErrorKind:
        return self.error.kind


Result = Ok[T] | Err


def err(kind: AuthErrorKind, detail: str = "", code: str | None = None) -> Err:
    return Err(AuthError(kind=kind, detail=detail, code=code))


# ── Store error classification ───────────────────────────────

_SCHEMA_MARKERS = (
    "no such table",
    "no such column",
    "does not exist",
    "undefinedtable",
    "undefinedcolumn",
)


def classify_store_error(exc: BaseException) -> AuthError:
    """Map a table-client exception onto the error taxonomy."""
    detail = str(exc)[:500]
    lowered = detail.lower()
    code = getattr(getattr(exc, "orig", None), "sqlstate", None)

    if isinstance(exc, (OperationalError, ProgrammingError)) and any(
        marker in lowered for marker in _SCHEMA_MARKERS
    ):
        return AuthError(AuthErrorKind.SCHEMA_ERROR, detail, code)
    if isinstance(exc, ProgrammingError):
        return AuthError(AuthErrorKind.SCHEMA_ERROR, detail, code)
    if isinstance(exc, OperationalError):
        return AuthError(AuthErrorKind.CONNECTION_ERROR, detail, code)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return AuthError(AuthErrorKind.CONNECTION_ERROR, detail, code)
    if isinstance(exc, OSError):
        return AuthError(AuthErrorKind.CONNECTION_ERROR, detail, code)
    return AuthError(AuthErrorKind.UNEXPECTED_ERROR, detail, code)
