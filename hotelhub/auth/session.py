"""Session state holder: the single source of identity for the process.

Transitions:
  Unknown (is_loading) -> Authenticated | Unauthenticated | Error
  Authenticated -> Unauthenticated on sign-out

Each resolution pipeline (profile, then scope) carries a generation number.
Starting a new sign-in or signing out bumps the generation, and a pipeline
whose generation is no longer current finishes without publishing, so the
most recent call always decides the final state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from pydantic import BaseModel

from hotelhub.auth.errors import AuthError, AuthErrorKind, Err
from hotelhub.auth.profiles import ProfileResolver
from hotelhub.auth.provider import AuthEvent, ProviderSession, ProviderUser
from hotelhub.auth.scope import TenantScopeResolver
from hotelhub.auth.verifier import CredentialVerifier, classify_provider_error
from hotelhub.models.profile import ScopedUser

logger = logging.getLogger(__name__)


class AuthState(BaseModel):
    user: ScopedUser | None = None
    is_loading: bool = False
    is_authenticated: bool = False
    error: str | None = None


SIGNED_OUT_STATE = AuthState()

Listener = Callable[[AuthState], None]


@dataclass(frozen=True)
class SessionResult:
    success: bool
    error_kind: AuthErrorKind | None = None
    error: str | None = None
    # True when a later sign-in / sign-out replaced this call's pipeline
    superseded: bool = False
    # Bearer token for the principal this call signed in
    access_token: str | None = None
    # State this call published, if any
    state: AuthState | None = None

    @classmethod
    def failure(cls, error: AuthError, state: AuthState | None = None) -> SessionResult:
        return cls(success=False, error_kind=error.kind, error=error.message, state=state)


class SessionStore:
    def __init__(
        self,
        verifier: CredentialVerifier,
        profiles: ProfileResolver,
        scopes: TenantScopeResolver,
    ) -> None:
        self._verifier = verifier
        self._profiles = profiles
        self._scopes = scopes
        self._state = AuthState(is_loading=True)
        self._listeners: list[Listener] = []
        self._generation = 0
        self._pending_sign_ins = 0
        self._unsubscribe_provider: Callable[[], None] | None = None

    # ── Observation ───────────────────────────────────────────

    def get_state(self) -> AuthState:
        return self._state.model_copy(deep=True)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and push the current state to it right away."""
        self._listeners.append(listener)
        self._call(listener, self.get_state())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── Lifecycle ────────────────────────────────────────────

    async def start(self) -> None:
        """Attach to provider events and restore any existing provider session."""
        provider = self._verifier.provider
        if self._unsubscribe_provider is None:
            self._unsubscribe_provider = provider.on_auth_state_change(self._on_provider_event)

        generation = self._next_generation()
        try:
            resp = await provider.get_session()
        except Exception as exc:
            logger.exception("Reading the provider session failed")
            self._publish_error(generation, AuthError(AuthErrorKind.UNEXPECTED_ERROR, str(exc)))
            return

        if resp.error is not None:
            error = classify_provider_error(resp.error)
            logger.warning("Session initialization failed: %s", error.detail)
            self._publish_error(generation, error)
        elif resp.session is not None:
            await self._activate(resp.session.user, generation)
        elif generation == self._generation:
            self._set(SIGNED_OUT_STATE)

    def close(self) -> None:
        if self._unsubscribe_provider is not None:
            self._unsubscribe_provider()
            self._unsubscribe_provider = None

    # ── Session API ──────────────────────────────────────────

    async def sign_in(self, email: str, password: str) -> SessionResult:
        generation = self._next_generation()
        previous = self._state
        self._set(previous.model_copy(update={"is_loading": True, "error": None}))

        self._pending_sign_ins += 1
        try:
            verified = await self._verifier.sign_in(email, password)
        finally:
            self._pending_sign_ins -= 1

        if isinstance(verified, Err):
            # Credential failures are reported to the caller, not the session
            if generation == self._generation:
                self._set(previous.model_copy(update={"is_loading": False}))
            return SessionResult.failure(verified.error)

        result = await self._activate(verified.value.principal, generation)
        if result.success:
            return replace(result, access_token=verified.value.session.access_token)
        return result

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        hotel_name: str | None = None,
    ) -> SessionResult:
        """Register a new hotel client and create its profile.

        The session is only activated when the provider signs the new
        principal in straight away; otherwise the caller signs in once the
        account is confirmed.
        """
        metadata = {"full_name": full_name}
        if hotel_name:
            metadata["hotel_name"] = hotel_name

        self._pending_sign_ins += 1
        try:
            registered = await self._verifier.sign_up(email, password, metadata)
        finally:
            self._pending_sign_ins -= 1
        if isinstance(registered, Err):
            return SessionResult.failure(registered.error)

        principal = registered.value.principal
        profile = await self._profiles.register_profile(principal)
        if isinstance(profile, Err):
            return SessionResult.failure(profile.error)

        session = registered.value.session
        if session is None:
            return SessionResult(success=True)
        result = await self._activate(principal, self._next_generation())
        if result.success:
            return replace(result, access_token=session.access_token)
        return result

    async def sign_out(self) -> SessionResult:
        self._next_generation()
        result = await self._verifier.sign_out()
        # Local state is cleared even when the provider call failed
        self._set(SIGNED_OUT_STATE)
        if isinstance(result, Err):
            return SessionResult.failure(result.error, SIGNED_OUT_STATE)
        return SessionResult(success=True, state=SIGNED_OUT_STATE)

    async def reset_password(self, email: str) -> SessionResult:
        result = await self._verifier.reset_password(email)
        if isinstance(result, Err):
            return SessionResult.failure(result.error)
        return SessionResult(success=True)

    # ── Pipeline ─────────────────────────────────────────────

    async def _activate(self, principal: ProviderUser, generation: int) -> SessionResult:
        profile = await self._profiles.resolve_profile(principal)
        if isinstance(profile, Err):
            return self._publish_error(generation, profile.error)

        scoped = await self._scopes.resolve_scope(profile.value)
        if isinstance(scoped, Err):
            return self._publish_error(generation, scoped.error)

        if generation != self._generation:
            logger.info("Discarding superseded session pipeline for %s", principal.id)
            return SessionResult(success=False, superseded=True)

        state = AuthState(user=scoped.value, is_authenticated=True)
        self._set(state)
        logger.info("Session active for %s (%s)", scoped.value.email, scoped.value.role)
        return SessionResult(success=True, state=state)

    async def _on_provider_event(self, event: AuthEvent, session: ProviderSession | None) -> None:
        if event == AuthEvent.SIGNED_OUT:
            self._next_generation()
            self._set(SIGNED_OUT_STATE)
            return

        if session is None or self._pending_sign_ins:
            # sign_in() and sign_up() drive their own pipelines
            return
        current = self._state.user
        if self._state.is_authenticated and current is not None and str(current.id) == session.user.id:
            return
        await self._activate(session.user, self._next_generation())

    def _publish_error(self, generation: int, error: AuthError) -> SessionResult:
        if generation != self._generation:
            return SessionResult(success=False, superseded=True)
        state = AuthState(error=error.message)
        self._set(state)
        return SessionResult.failure(error, state)

    # ── State plumbing ───────────────────────────────────────

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _set(self, state: AuthState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            self._call(listener, self.get_state())

    @staticmethod
    def _call(listener: Listener, state: AuthState) -> None:
        try:
            listener(state)
        except Exception:
            logger.exception("Session listener failed")
