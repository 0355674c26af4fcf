"""Tests for the hosted auth provider client against a mocked REST API."""

import json
import time
from datetime import datetime, timezone

import httpx
import pytest

from hotelhub.auth.errors import AuthErrorKind
from hotelhub.auth.http_provider import HttpAuthProvider
from hotelhub.auth.provider import AuthEvent
from hotelhub.auth.verifier import CredentialVerifier
from hotelhub.core.config import AuthProviderKind, ConfigurationError, Settings

USER = {"id": "5b2c3f0e-8d4a-4b9e-9a57-2f1f7a9c1d10", "email": "maria@pousada.com",
        "user_metadata": {"full_name": "Maria Souza"}}


def _session_body(expires_at: int | None = None) -> dict:
    return {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expires_at": expires_at or int(time.time()) + 3600,
        "user": USER,
    }


def _provider(handler, **kwargs) -> HttpAuthProvider:
    return HttpAuthProvider(
        "https://auth.example.test/",
        "anon-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_sign_in_posts_password_grant():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_session_body())

    provider = _provider(handler)
    events: list[AuthEvent] = []

    async def on_event(event, _session):
        events.append(event)

    provider.on_auth_state_change(on_event)
    resp = await provider.sign_in_with_password("maria@pousada.com", "secret")

    assert resp.error is None
    assert resp.user.id == USER["id"]
    assert resp.user.user_metadata == {"full_name": "Maria Souza"}
    assert resp.session.access_token == "access-1"
    assert provider.current_session is resp.session
    assert events == [AuthEvent.SIGNED_IN]

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/auth/v1/token"
    assert request.url.params["grant_type"] == "password"
    assert request.headers["apikey"] == "anon-key"
    assert json.loads(request.content) == {"email": "maria@pousada.com", "password": "secret"}


@pytest.mark.asyncio
async def test_sign_up_pending_confirmation_returns_bare_user():
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=USER)

    provider = _provider(handler)
    resp = await provider.sign_up(
        "maria@pousada.com", "secret", {"full_name": "Maria Souza", "hotel_name": "Pousada Azul"}
    )

    assert resp.error is None
    assert resp.user.id == USER["id"]
    assert resp.session is None
    assert provider.current_session is None
    assert seen[0].url.path == "/auth/v1/signup"
    assert json.loads(seen[0].content) == {
        "email": "maria@pousada.com",
        "password": "secret",
        "data": {"full_name": "Maria Souza", "hotel_name": "Pousada Azul"},
    }


@pytest.mark.asyncio
async def test_sign_up_autoconfirmed_signs_in():
    provider = _provider(lambda r: httpx.Response(200, json=_session_body()))
    events: list[AuthEvent] = []

    async def on_event(event, _session):
        events.append(event)

    provider.on_auth_state_change(on_event)
    resp = await provider.sign_up("maria@pousada.com", "secret", {})

    assert resp.session.access_token == "access-1"
    assert provider.current_session is resp.session
    assert events == [AuthEvent.SIGNED_IN]


@pytest.mark.asyncio
async def test_sign_up_taken_email_is_classified():
    def handler(request):
        return httpx.Response(
            422, json={"error_code": "user_already_exists", "msg": "User already registered"}
        )

    result = await CredentialVerifier(_provider(handler)).sign_up("maria@pousada.com", "secret", {})

    assert result.kind == AuthErrorKind.EMAIL_IN_USE


@pytest.mark.asyncio
async def test_sign_in_error_body_is_parsed():
    def handler(request):
        return httpx.Response(
            400, json={"error_code": "invalid_credentials", "msg": "Invalid login credentials"}
        )

    resp = await _provider(handler).sign_in_with_password("maria@pousada.com", "bad")

    assert resp.session is None
    assert resp.error.code == "invalid_credentials"
    assert resp.error.message == "Invalid login credentials"
    assert resp.error.status == 400


@pytest.mark.asyncio
async def test_legacy_oauth_error_body():
    def handler(request):
        return httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "Email not confirmed"}
        )

    resp = await _provider(handler).sign_in_with_password("maria@pousada.com", "x")

    assert resp.error.code == "invalid_grant"
    assert resp.error.message == "Email not confirmed"


@pytest.mark.asyncio
async def test_unreachable_provider_is_connection_error():
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    verifier = CredentialVerifier(_provider(handler))
    result = await verifier.sign_in("maria@pousada.com", "secret")

    assert result.kind == AuthErrorKind.CONNECTION_ERROR


@pytest.mark.asyncio
async def test_success_without_user_is_reported():
    def handler(request):
        return httpx.Response(200, json={"access_token": "a"})

    result = await CredentialVerifier(_provider(handler)).sign_in("maria@pousada.com", "x")

    assert result.kind == AuthErrorKind.UNEXPECTED_ERROR


@pytest.mark.asyncio
async def test_sign_out_revokes_and_clears_session():
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json=_session_body())
        return httpx.Response(204)

    provider = _provider(handler)
    await provider.sign_in_with_password("maria@pousada.com", "secret")
    resp = await provider.sign_out()

    assert resp.error is None
    assert provider.current_session is None
    assert seen[-1].url.path == "/auth/v1/logout"
    assert seen[-1].headers["Authorization"] == "Bearer access-1"


@pytest.mark.asyncio
async def test_sign_out_clears_session_when_remote_fails():
    def handler(request):
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json=_session_body())
        return httpx.Response(500, json={"message": "boom"})

    provider = _provider(handler)
    events: list[AuthEvent] = []

    async def on_event(event, _session):
        events.append(event)

    provider.on_auth_state_change(on_event)
    await provider.sign_in_with_password("maria@pousada.com", "secret")
    resp = await provider.sign_out()

    assert resp.error.status == 500
    assert provider.current_session is None
    assert events == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]


@pytest.mark.asyncio
async def test_expired_session_is_refreshed():
    def handler(request):
        grant = request.url.params["grant_type"]
        if grant == "password":
            return httpx.Response(200, json=_session_body(expires_at=int(time.time()) - 10))
        body = _session_body()
        body["access_token"] = "access-2"
        return httpx.Response(200, json=body)

    provider = _provider(handler)
    await provider.sign_in_with_password("maria@pousada.com", "secret")
    resp = await provider.get_session()

    assert resp.session.access_token == "access-2"
    assert resp.session.expires_at > datetime.now(timezone.utc)


@pytest.mark.asyncio
async def test_peek_session_does_not_refresh():
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=_session_body(expires_at=int(time.time()) - 10))

    provider = _provider(handler)
    await provider.sign_in_with_password("maria@pousada.com", "secret")
    resp = provider.peek_session()

    assert resp.session is provider.current_session
    assert resp.session.access_token == "access-1"
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_get_session_without_sign_in():
    resp = await _provider(lambda r: httpx.Response(500)).get_session()
    assert resp.session is None
    assert resp.error is None


@pytest.mark.asyncio
async def test_get_user_sends_bearer():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer token-x"
        return httpx.Response(200, json=USER)

    resp = await _provider(handler).get_user("token-x")

    assert resp.user.email == "maria@pousada.com"


@pytest.mark.asyncio
async def test_get_user_rejected_token():
    def handler(request):
        return httpx.Response(401, json={"error_code": "bad_jwt", "msg": "invalid JWT"})

    resp = await _provider(handler).get_user("expired")

    assert resp.user is None
    assert resp.error.status == 401


@pytest.mark.asyncio
async def test_reset_password_passes_redirect():
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    provider = _provider(handler, redirect_to="https://app.example.test/reset")
    resp = await provider.reset_password_for_email("maria@pousada.com")

    assert resp.error is None
    assert seen[0].url.path == "/auth/v1/recover"
    assert seen[0].url.params["redirect_to"] == "https://app.example.test/reset"
    assert json.loads(seen[0].content) == {"email": "maria@pousada.com"}


def test_from_settings_requires_url_and_key():
    settings = Settings(auth_provider=AuthProviderKind.HTTP, provider_url="", provider_public_key="")
    with pytest.raises(ConfigurationError, match="PROVIDER_URL, PROVIDER_PUBLIC_KEY"):
        HttpAuthProvider.from_settings(settings)


def test_from_settings():
    settings = Settings(
        auth_provider=AuthProviderKind.HTTP,
        provider_url="https://auth.example.test",
        provider_public_key="anon-key",
    )
    assert isinstance(HttpAuthProvider.from_settings(settings), HttpAuthProvider)
