"""Hosted auth provider client (GoTrue-style REST API)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from hotelhub.auth.provider import (
    AuthEvent,
    AuthEventEmitter,
    ProviderError,
    ProviderResponse,
    ProviderSession,
    ProviderUser,
)
from hotelhub.core.config import Settings

logger = logging.getLogger(__name__)


class HttpAuthProvider(AuthEventEmitter):
    """Talks to ``{provider_url}/auth/v1`` using the public (anon) key.

    The session returned by a successful sign-in is kept in memory; it is the
    process-local equivalent of the browser token storage.
    """

    def __init__(
        self,
        base_url: str,
        public_key: str,
        *,
        timeout: float = 10.0,
        redirect_to: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        self._base_url = base_url.rstrip("/") + "/auth/v1"
        self._public_key = public_key
        self._timeout = timeout
        self._redirect_to = redirect_to
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpAuthProvider:
        settings.require_provider()
        return cls(
            settings.provider_url,
            settings.provider_public_key,
            timeout=settings.provider_timeout_seconds,
            redirect_to=settings.password_reset_redirect_url,
        )

    # ── Public API ───────────────────────────────────────────

    async def sign_in_with_password(self, email: str, password: str) -> ProviderResponse:
        resp = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if isinstance(resp, ProviderError):
            return ProviderResponse(error=resp)

        session = _parse_session(resp.json())
        if session is None:
            return ProviderResponse(error=ProviderError("No user data received"))

        self._session = session
        await self._emit(AuthEvent.SIGNED_IN, session)
        return ProviderResponse(user=session.user, session=session)

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> ProviderResponse:
        """Register a principal. The response carries a session only when the
        project auto-confirms new accounts; otherwise it is the bare user."""
        resp = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata},
        )
        if isinstance(resp, ProviderError):
            return ProviderResponse(error=resp)

        body = resp.json()
        session = _parse_session(body)
        if session is not None:
            self._session = session
            await self._emit(AuthEvent.SIGNED_IN, session)
            return ProviderResponse(user=session.user, session=session)

        user = _parse_user(body)
        if user is None:
            return ProviderResponse(error=ProviderError("No user data received"))
        return ProviderResponse(user=user)

    async def refresh_session(self) -> ProviderResponse:
        if self._session is None or not self._session.refresh_token:
            return ProviderResponse(error=ProviderError("No session to refresh"))

        resp = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        if isinstance(resp, ProviderError):
            return ProviderResponse(error=resp)

        session = _parse_session(resp.json())
        if session is None:
            return ProviderResponse(error=ProviderError("No user data received"))
        self._session = session
        await self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return ProviderResponse(user=session.user, session=session)

    async def sign_out(self) -> ProviderResponse:
        session = self._session
        self._session = None
        error = None
        if session is not None:
            resp = await self._request("POST", "/logout", token=session.access_token)
            if isinstance(resp, ProviderError):
                # The local session is dropped regardless of the remote result
                logger.warning("Remote sign-out failed: %s", resp.message)
                error = resp
        await self._emit(AuthEvent.SIGNED_OUT, None)
        return ProviderResponse(error=error)

    async def get_session(self) -> ProviderResponse:
        session = self._session
        if session is not None and session.expires_at is not None:
            if session.expires_at <= datetime.now(timezone.utc):
                return await self.refresh_session()
        return ProviderResponse(user=session.user if session else None, session=session)

    async def get_user(self, access_token: str) -> ProviderResponse:
        resp = await self._request("GET", "/user", token=access_token)
        if isinstance(resp, ProviderError):
            return ProviderResponse(error=resp)
        user = _parse_user(resp.json())
        if user is None:
            return ProviderResponse(error=ProviderError("No user data received", status=resp.status_code))
        return ProviderResponse(user=user)

    async def reset_password_for_email(self, email: str) -> ProviderResponse:
        params = {"redirect_to": self._redirect_to} if self._redirect_to else None
        resp = await self._request("POST", "/recover", params=params, json={"email": email})
        if isinstance(resp, ProviderError):
            return ProviderResponse(error=resp)
        return ProviderResponse()

    # ── Transport ────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict | None = None,
        json: dict | None = None,
    ) -> httpx.Response | ProviderError:
        headers = {"apikey": self._public_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, path, params=params, json=json, headers=headers)
        except httpx.TransportError as exc:
            logger.warning("Auth provider unreachable (%s %s): %s", method, path, exc)
            return ProviderError(str(exc) or exc.__class__.__name__, code="network_error")

        if resp.is_success:
            return resp
        return _parse_error(resp)


# ── Payload parsing ──────────────────────────────────────────

def _parse_user(data: Any) -> ProviderUser | None:
    if not isinstance(data, dict) or not data.get("id"):
        return None
    return ProviderUser(
        id=str(data["id"]),
        email=data.get("email") or "",
        user_metadata=data.get("user_metadata") or {},
    )


def _parse_session(data: Any) -> ProviderSession | None:
    if not isinstance(data, dict):
        return None
    user = _parse_user(data.get("user"))
    if user is None or not data.get("access_token"):
        return None
    expires_at = None
    if data.get("expires_at"):
        expires_at = datetime.fromtimestamp(int(data["expires_at"]), tz=timezone.utc)
    return ProviderSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_at=expires_at,
        user=user,
    )


def _parse_error(resp: httpx.Response) -> ProviderError:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = (
        body.get("msg")
        or body.get("error_description")
        or body.get("message")
        or body.get("error")
        or resp.reason_phrase
        or f"HTTP {resp.status_code}"
    )
    code = body.get("error_code") or body.get("error")
    return ProviderError(message=str(message), code=code, status=resp.status_code)
