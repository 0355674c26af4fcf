"""FastAPI dependencies for request authorization and tenant resolution."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hotelhub.auth.container import AuthServices
from hotelhub.auth.errors import AuthError, AuthErrorKind, Err
from hotelhub.auth.verifier import classify_provider_error
from hotelhub.core.database import get_session
from hotelhub.models.hotel import BLOCKED_STATUSES
from hotelhub.models.profile import ScopedUser, UserRole

bearer_scheme = HTTPBearer()

ERROR_STATUS: dict[AuthErrorKind, int] = {
    AuthErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.EMAIL_UNCONFIRMED: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.ACCOUNT_DISABLED: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.EMAIL_IN_USE: status.HTTP_409_CONFLICT,
    AuthErrorKind.PROFILE_NOT_FOUND: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    AuthErrorKind.CONNECTION_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    AuthErrorKind.SCHEMA_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    AuthErrorKind.UNEXPECTED_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error(error: AuthError) -> HTTPException:
    """Translate a classified failure into an HTTP error with a readable message."""
    return HTTPException(
        status_code=ERROR_STATUS.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"kind": str(error.kind), "message": error.message},
    )


def get_services(request: Request) -> AuthServices:
    return request.app.state.auth


Services = Annotated[AuthServices, Depends(get_services)]
Session = Annotated[AsyncSession, Depends(get_session)]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    services: Services,
) -> ScopedUser:
    """Resolve a bearer token to the caller's scoped identity.

    The token is verified by the auth provider, then run through the same
    profile and scope resolvers as an interactive sign-in.
    """
    resp = await services.provider.get_user(credentials.credentials)
    if resp.error is not None or resp.user is None:
        error = (
            classify_provider_error(resp.error)
            if resp.error is not None
            else AuthError(AuthErrorKind.INVALID_CREDENTIALS, "No user for token")
        )
        if error.kind == AuthErrorKind.UNEXPECTED_ERROR:
            error = AuthError(AuthErrorKind.INVALID_CREDENTIALS, error.detail, error.code)
        raise http_error(error)

    profile = await services.profiles.resolve_profile(resp.user)
    if isinstance(profile, Err):
        raise http_error(profile.error)

    scoped = await services.scopes.resolve_scope(profile.value)
    if isinstance(scoped, Err):
        raise http_error(scoped.error)
    return scoped.value


CurrentUser = Annotated[ScopedUser, Depends(get_current_user)]


async def require_master_admin(user: CurrentUser) -> ScopedUser:
    if user.role != UserRole.MASTER_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only master admins can perform this action",
        )
    return user


async def require_hotel_member(user: CurrentUser) -> ScopedUser:
    """Tenant routes: caller must belong to a hotel that is not locked out.

    A hotel whose status could not be read (missing row or failed lookup)
    counts as locked out.
    """
    if user.hotel_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This action requires a hotel account",
        )
    if user.hotel_status is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Hotel status could not be verified",
        )
    if user.hotel_status in BLOCKED_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Hotel access is {user.hotel_status}",
        )
    return user


MasterAdmin = Annotated[ScopedUser, Depends(require_master_admin)]
HotelMember = Annotated[ScopedUser, Depends(require_hotel_member)]
