"""Database-backed auth provider.

Principals live in the ``principals`` table with Argon2 password hashes;
sessions are signed JWTs. Error codes and messages follow the hosted
provider's so both implementations classify identically.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone

from jose import JWTError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from hotelhub.auth.login_attempts import LoginAttemptTracker
from hotelhub.auth.provider import (
    AuthEvent,
    AuthEventEmitter,
    ProviderError,
    ProviderResponse,
    ProviderSession,
    ProviderUser,
)
from hotelhub.core.security import create_jwt, decode_jwt, hash_password, verify_password
from hotelhub.models.principal import Principal

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = ProviderError("Invalid login credentials", code="invalid_credentials", status=400)
EMAIL_NOT_CONFIRMED = ProviderError("Email not confirmed", code="email_not_confirmed", status=400)
TOO_MANY_REQUESTS = ProviderError("Too many requests", code="over_request_rate_limit", status=429)
USER_ALREADY_EXISTS = ProviderError("User already registered", code="user_already_exists", status=422)


class LocalAuthProvider(AuthEventEmitter):
    def __init__(
        self,
        session_factory: sessionmaker,
        attempts: LoginAttemptTracker | None = None,
    ) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._attempts = attempts or LoginAttemptTracker(session_factory)
        # Addresses that asked for a password reset, consumed by the mailer
        self.reset_requests: list[str] = []

    async def create_principal(
        self,
        email: str,
        password: str,
        *,
        metadata: dict | None = None,
        email_confirmed: bool = True,
    ) -> ProviderUser:
        """Register a principal. Raises ``IntegrityError`` if the email is taken."""
        principal = Principal(
            email=email.strip().lower(),
            password_hash=hash_password(password),
            email_confirmed=email_confirmed,
            metadata_json=json.dumps(metadata or {}),
        )
        async with self._session_factory() as db:
            db.add(principal)
            await db.commit()
            await db.refresh(principal)
        return _to_user(principal)

    async def sign_up(self, email: str, password: str, metadata: dict | None = None) -> ProviderResponse:
        """Self-service registration. No session is started; the user signs in next."""
        try:
            if await self._find_by_email(email) is not None:
                return ProviderResponse(error=USER_ALREADY_EXISTS)
            user = await self.create_principal(email, password, metadata=metadata)
        except IntegrityError:
            # Registered concurrently
            return ProviderResponse(error=USER_ALREADY_EXISTS)
        except (SQLAlchemyError, OSError) as exc:
            return _store_failure("Sign-up", exc)
        return ProviderResponse(user=user)

    async def sign_in_with_password(self, email: str, password: str) -> ProviderResponse:
        try:
            if await self._attempts.is_locked(email):
                return ProviderResponse(error=TOO_MANY_REQUESTS)

            principal = await self._find_by_email(email)
            if principal is None or not verify_password(password, principal.password_hash):
                if await self._attempts.register_failure(email):
                    logger.warning("Login locked for %s after repeated failures", email)
                return ProviderResponse(error=INVALID_CREDENTIALS)

            if not principal.email_confirmed:
                return ProviderResponse(error=EMAIL_NOT_CONFIRMED)

            await self._attempts.clear(email)
        except (SQLAlchemyError, OSError) as exc:
            return _store_failure("Sign-in", exc)

        user = _to_user(principal)
        token, expires_at = create_jwt(subject=user.id, email=user.email)
        session = ProviderSession(access_token=token, expires_at=expires_at, user=user)
        self._session = session
        await self._emit(AuthEvent.SIGNED_IN, session)
        return ProviderResponse(user=user, session=session)

    async def sign_out(self) -> ProviderResponse:
        self._session = None
        await self._emit(AuthEvent.SIGNED_OUT, None)
        return ProviderResponse()

    async def get_session(self) -> ProviderResponse:
        session = self._session
        if session is not None and session.expires_at is not None:
            if session.expires_at <= datetime.now(timezone.utc):
                self._session = None
                await self._emit(AuthEvent.SIGNED_OUT, None)
                return ProviderResponse()
        return ProviderResponse(user=session.user if session else None, session=session)

    async def get_user(self, access_token: str) -> ProviderResponse:
        try:
            payload = decode_jwt(access_token)
            principal_id = uuid.UUID(payload["sub"])
        except (JWTError, KeyError, ValueError):
            return ProviderResponse(
                error=ProviderError("Invalid or expired token", code="bad_jwt", status=401)
            )

        try:
            async with self._session_factory() as db:
                principal = await db.get(Principal, principal_id)
        except (SQLAlchemyError, OSError) as exc:
            return _store_failure("Principal lookup", exc)
        if principal is None:
            return ProviderResponse(
                error=ProviderError("User not found", code="user_not_found", status=404)
            )
        return ProviderResponse(user=_to_user(principal))

    async def reset_password_for_email(self, email: str) -> ProviderResponse:
        try:
            principal = await self._find_by_email(email)
        except (SQLAlchemyError, OSError) as exc:
            return _store_failure("Password reset lookup", exc)
        # Unknown addresses succeed silently
        if principal is not None:
            self.reset_requests.append(email)
        return ProviderResponse()

    async def _find_by_email(self, email: str) -> Principal | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Principal).where(Principal.email == email.strip().lower())
            )
            return result.scalar_one_or_none()


def _to_user(principal: Principal) -> ProviderUser:
    return ProviderUser(
        id=str(principal.id),
        email=principal.email,
        user_metadata=json.loads(principal.metadata_json or "{}"),
    )


def _store_failure(action: str, exc: Exception) -> ProviderResponse:
    # Reported with the hosted provider's code for an unreachable backend
    logger.warning("%s failed: %s", action, exc)
    return ProviderResponse(error=ProviderError(str(exc)[:200], code="network_error"))
