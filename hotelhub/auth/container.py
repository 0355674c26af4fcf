"""Composition root for the session core.

``build_auth_services`` wires one of each component. The application builds
it once at startup and keeps it on ``app.state``; nothing else constructs a
``SessionStore``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import sessionmaker

from hotelhub.auth.diagnostics import DiagnosticProbe
from hotelhub.auth.http_provider import HttpAuthProvider
from hotelhub.auth.local_provider import LocalAuthProvider
from hotelhub.auth.login_attempts import LoginAttemptTracker
from hotelhub.auth.profiles import BootstrapRoleRule, ProfileResolver
from hotelhub.auth.provider import AuthProvider
from hotelhub.auth.scope import TenantScopeResolver
from hotelhub.auth.session import SessionStore
from hotelhub.auth.verifier import CredentialVerifier
from hotelhub.core.config import AuthProviderKind, Settings


@dataclass
class AuthServices:
    provider: AuthProvider
    verifier: CredentialVerifier
    profiles: ProfileResolver
    scopes: TenantScopeResolver
    session: SessionStore
    probe: DiagnosticProbe


def build_provider(settings: Settings, session_factory: sessionmaker) -> AuthProvider:
    if settings.auth_provider == AuthProviderKind.HTTP:
        return HttpAuthProvider.from_settings(settings)
    return LocalAuthProvider(
        session_factory,
        LoginAttemptTracker(
            session_factory,
            max_failed=settings.login_max_failed_attempts,
            window=timedelta(seconds=settings.login_attempt_window_seconds),
        ),
    )


def build_auth_services(
    settings: Settings,
    session_factory: sessionmaker,
    provider: AuthProvider | None = None,
) -> AuthServices:
    provider = provider or build_provider(settings, session_factory)
    verifier = CredentialVerifier(provider)
    profiles = ProfileResolver(
        session_factory,
        BootstrapRoleRule.from_settings(settings),
        bootstrap=settings.bootstrap_profiles,
    )
    scopes = TenantScopeResolver(session_factory)
    return AuthServices(
        provider=provider,
        verifier=verifier,
        profiles=profiles,
        scopes=scopes,
        session=SessionStore(verifier, profiles, scopes),
        probe=DiagnosticProbe(session_factory, provider, settings.test_accounts),
    )
