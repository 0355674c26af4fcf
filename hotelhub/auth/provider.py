"""Auth provider contract shared by the hosted and local implementations.

Providers never raise for expected failures. Every call returns a
``ProviderResponse`` whose ``error`` is set on failure, mirroring the
``{data, error}`` shape of hosted auth services.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class AuthEvent(StrEnum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass(frozen=True)
class ProviderUser:
    """The principal as reported by the provider."""
    id: str
    email: str
    user_metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderSession:
    access_token: str
    user: ProviderUser
    refresh_token: str | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class ProviderError:
    message: str
    code: str | None = None
    status: int | None = None


@dataclass(frozen=True)
class ProviderResponse:
    user: ProviderUser | None = None
    session: ProviderSession | None = None
    error: ProviderError | None = None


AuthStateCallback = Callable[[AuthEvent, ProviderSession | None], Awaitable[None]]


class AuthProvider(Protocol):
    async def sign_in_with_password(self, email: str, password: str) -> ProviderResponse: ...

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> ProviderResponse: ...

    async def sign_out(self) -> ProviderResponse: ...

    async def get_session(self) -> ProviderResponse: ...

    def peek_session(self) -> ProviderResponse: ...

    async def get_user(self, access_token: str) -> ProviderResponse: ...

    async def reset_password_for_email(self, email: str) -> ProviderResponse: ...

    def on_auth_state_change(self, callback: AuthStateCallback) -> Callable[[], None]: ...


class AuthEventEmitter:
    """Holds the current provider session and fans out auth events."""

    def __init__(self) -> None:
        self._callbacks: list[AuthStateCallback] = []
        self._session: ProviderSession | None = None

    @property
    def current_session(self) -> ProviderSession | None:
        return self._session

    def peek_session(self) -> ProviderResponse:
        """Report the held session without refreshing it or emitting events."""
        session = self._session
        return ProviderResponse(user=session.user if session else None, session=session)

    def on_auth_state_change(self, callback: AuthStateCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def _emit(self, event: AuthEvent, session: ProviderSession | None) -> None:
        for callback in list(self._callbacks):
            try:
                await callback(event, session)
            except Exception:
                logger.exception("Auth state callback failed for %s", event)
