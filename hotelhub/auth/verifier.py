"""Credential verifier: exchanges email/password for a provider session."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hotelhub.auth.errors import AuthError, AuthErrorKind, Err, Ok, Result, err
from hotelhub.auth.provider import AuthProvider, ProviderError, ProviderSession, ProviderUser

logger = logging.getLogger(__name__)

# Provider error codes, checked before any message matching
_CODE_KINDS: dict[str, AuthErrorKind] = {
    "invalid_credentials": AuthErrorKind.INVALID_CREDENTIALS,
    "invalid_grant": AuthErrorKind.INVALID_CREDENTIALS,
    "user_not_found": AuthErrorKind.INVALID_CREDENTIALS,
    "email_not_confirmed": AuthErrorKind.EMAIL_UNCONFIRMED,
    "over_request_rate_limit": AuthErrorKind.RATE_LIMITED,
    "over_email_send_rate_limit": AuthErrorKind.RATE_LIMITED,
    "user_already_exists": AuthErrorKind.EMAIL_IN_USE,
    "email_exists": AuthErrorKind.EMAIL_IN_USE,
    "network_error": AuthErrorKind.CONNECTION_ERROR,
}

_MESSAGE_KINDS: tuple[tuple[str, AuthErrorKind], ...] = (
    ("invalid login credentials", AuthErrorKind.INVALID_CREDENTIALS),
    ("email not confirmed", AuthErrorKind.EMAIL_UNCONFIRMED),
    ("too many requests", AuthErrorKind.RATE_LIMITED),
    ("rate limit", AuthErrorKind.RATE_LIMITED),
    ("already registered", AuthErrorKind.EMAIL_IN_USE),
)


@dataclass(frozen=True)
class VerifiedCredentials:
    principal_id: str
    principal: ProviderUser
    session: ProviderSession


@dataclass(frozen=True)
class Registration:
    principal: ProviderUser
    # Only set when the provider signs the new principal in right away
    session: ProviderSession | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def classify_provider_error(error: ProviderError) -> AuthError:
    kind = _CODE_KINDS.get((error.code or "").lower())
    if kind is None and error.status == 429:
        kind = AuthErrorKind.RATE_LIMITED
    if kind is None and error.status is not None and error.status >= 500:
        kind = AuthErrorKind.CONNECTION_ERROR
    if kind is None:
        lowered = error.message.lower()
        kind = next(
            (k for marker, k in _MESSAGE_KINDS if marker in lowered),
            AuthErrorKind.UNEXPECTED_ERROR,
        )
    return AuthError(kind=kind, detail=error.message, code=error.code)


class CredentialVerifier:
    def __init__(self, provider: AuthProvider) -> None:
        self.provider = provider

    async def sign_in(self, email: str, password: str) -> Result[VerifiedCredentials]:
        email = normalize_email(email)
        try:
            resp = await self.provider.sign_in_with_password(email, password)
        except Exception as exc:
            logger.exception("Sign-in call failed for %s", email)
            return err(AuthErrorKind.UNEXPECTED_ERROR, str(exc))

        if resp.error is not None:
            error = classify_provider_error(resp.error)
            _log_failure("Sign-in", email, error)
            return Err(error)

        if resp.user is None or resp.session is None:
            logger.error("Sign-in for %s returned no user data", email)
            return err(AuthErrorKind.UNEXPECTED_ERROR, "Authentication returned no user data")

        return Ok(VerifiedCredentials(
            principal_id=resp.user.id,
            principal=resp.user,
            session=resp.session,
        ))

    async def sign_up(self, email: str, password: str, metadata: dict) -> Result[Registration]:
        email = normalize_email(email)
        try:
            resp = await self.provider.sign_up(email, password, metadata)
        except Exception as exc:
            logger.exception("Sign-up call failed for %s", email)
            return err(AuthErrorKind.UNEXPECTED_ERROR, str(exc))

        if resp.error is not None:
            error = classify_provider_error(resp.error)
            _log_failure("Sign-up", email, error)
            return Err(error)

        if resp.user is None:
            logger.error("Sign-up for %s returned no user data", email)
            return err(AuthErrorKind.UNEXPECTED_ERROR, "Account creation failed")

        logger.info("Registered %s", email)
        return Ok(Registration(principal=resp.user, session=resp.session))

    async def sign_out(self) -> Result[None]:
        try:
            resp = await self.provider.sign_out()
        except Exception as exc:
            logger.exception("Sign-out call failed")
            return err(AuthErrorKind.UNEXPECTED_ERROR, str(exc))
        if resp.error is not None:
            error = classify_provider_error(resp.error)
            _log_failure("Sign-out", "", error)
            return Err(error)
        return Ok(None)

    async def reset_password(self, email: str) -> Result[None]:
        email = normalize_email(email)
        try:
            resp = await self.provider.reset_password_for_email(email)
        except Exception as exc:
            logger.exception("Password reset call failed for %s", email)
            return err(AuthErrorKind.UNEXPECTED_ERROR, str(exc))
        if resp.error is not None:
            error = classify_provider_error(resp.error)
            _log_failure("Password reset", email, error)
            return Err(error)
        return Ok(None)


def _log_failure(action: str, email: str, error: AuthError) -> None:
    if error.kind == AuthErrorKind.UNEXPECTED_ERROR:
        logger.error("%s failed for %s: %s (code=%s)", action, email, error.detail, error.code)
    else:
        logger.info("%s rejected for %s: %s", action, email, error.kind)
