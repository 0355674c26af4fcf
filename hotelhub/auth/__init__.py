"""Session & tenant authorization core."""

from hotelhub.auth.container import AuthServices, build_auth_services
from hotelhub.auth.diagnostics import DiagnosticProbe, DiagnosticReport
from hotelhub.auth.errors import AuthError, AuthErrorKind, Err, Ok
from hotelhub.auth.profiles import BootstrapRoleRule, ProfileResolver
from hotelhub.auth.scope import TenantScopeResolver
from hotelhub.auth.session import AuthState, SessionResult, SessionStore
from hotelhub.auth.verifier import CredentialVerifier

__all__ = [
    "AuthError",
    "AuthErrorKind",
    "AuthServices",
    "AuthState",
    "BootstrapRoleRule",
    "CredentialVerifier",
    "DiagnosticProbe",
    "DiagnosticReport",
    "Err",
    "Ok",
    "ProfileResolver",
    "SessionResult",
    "SessionStore",
    "TenantScopeResolver",
    "build_auth_services",
]
