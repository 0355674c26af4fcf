"""Session endpoints used by the console to sign up, sign in and sign out."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, EmailStr, Field

from hotelhub.api.deps import ERROR_STATUS, CurrentUser, Services
from hotelhub.auth.session import SIGNED_OUT_STATE, AuthState, SessionResult

router = APIRouter(prefix="/session", tags=["session"])


# ── Schemas ──────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1, max_length=255)
    hotel_name: str | None = Field(default=None, max_length=255)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class SessionResponse(BaseModel):
    success: bool
    error_kind: str | None = None
    error: str | None = None
    state: AuthState
    access_token: str | None = None
    token_type: str = "bearer"


def _response(result: SessionResult) -> SessionResponse:
    # Only the state this call produced; never the session held for someone else
    return SessionResponse(
        success=result.success,
        error_kind=str(result.error_kind) if result.error_kind else None,
        error=result.error,
        state=result.state or SIGNED_OUT_STATE,
        access_token=result.access_token,
    )


def _failure_status(result: SessionResult) -> int:
    # A superseded attempt has no error kind
    return ERROR_STATUS[result.error_kind] if result.error_kind else status.HTTP_409_CONFLICT


# ── Routes ───────────────────────────────────────────────────

@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, services: Services, response: Response) -> SessionResponse:
    """Register a hotel client account.

    The new profile is a ``client`` with a hotel in ``pending_setup``. A
    bearer token is only returned when the provider signs the account in
    immediately; otherwise the client confirms the email and logs in.
    """
    result = await services.session.sign_up(
        body.email, body.password, body.full_name, body.hotel_name
    )
    if not result.success:
        response.status_code = _failure_status(result)
    return _response(result)


@router.post("/login", response_model=SessionResponse)
async def login(body: LoginRequest, services: Services, response: Response) -> SessionResponse:
    """Sign in and return the resolved session state plus a bearer token.

    Failures keep the body shape and set the status from the error kind;
    a superseded attempt answers 409.
    """
    result = await services.session.sign_in(body.email, body.password)
    if not result.success:
        response.status_code = _failure_status(result)
    return _response(result)


@router.post("/logout", response_model=SessionResponse)
async def logout(user: CurrentUser, services: Services) -> SessionResponse:
    """End the caller's session.

    The held provider session is only signed out when it belongs to the
    caller; another user's interactive session is left alone.
    """
    held = services.session.get_state().user
    if held is None or held.id != user.id:
        return SessionResponse(success=True, state=SIGNED_OUT_STATE)
    return _response(await services.session.sign_out())


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def password_reset(body: PasswordResetRequest, services: Services) -> dict:
    """Request a reset email. Unknown addresses are accepted silently."""
    result = await services.session.reset_password(body.email)
    return {
        "success": result.success,
        "error_kind": str(result.error_kind) if result.error_kind else None,
        "error": result.error,
    }


@router.get("/state", response_model=AuthState)
async def get_state(user: CurrentUser) -> AuthState:
    """The caller's own session state, resolved from the bearer token."""
    return AuthState(user=user, is_authenticated=True)
