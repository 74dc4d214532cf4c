from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.deps import get_auth_client, get_session_store, get_settings
from app.schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginView,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
    SessionUser,
    VerifyTokenResponse,
)
from app.schemas.common import OkResponse
from services.auth import (
    AuthClient,
    AuthError,
    AuthTransportError,
    AuthValidationError,
    DuplicateSubmissionError,
    SessionStore,
)
from services.auth.settings import AuthSettings

router = APIRouter(prefix="/api/auth", tags=["auth"])
views = APIRouter(tags=["views"])

_FORGOT_PASSWORD_MESSAGE = "If the address is registered, a reset link has been sent."


def _http_error(exc: AuthError, *, failure_status: int = 400) -> HTTPException:
    """Map an auth-flow failure onto the status the UI reacts to."""
    if isinstance(exc, DuplicateSubmissionError):
        status = 409
    elif isinstance(exc, AuthValidationError):
        status = 400
    elif isinstance(exc, AuthTransportError):
        status = 504 if exc.timed_out else 502
    else:
        status = failure_status
    return HTTPException(status_code=status, detail=exc.message)


@views.get("/login", response_model=LoginView)
def login_view(
    store: SessionStore = Depends(get_session_store),
    client: AuthClient = Depends(get_auth_client),
) -> LoginView:
    user = store.user
    return LoginView(
        authenticated=user is not None,
        is_loading=store.is_loading or client.is_loading,
        user=SessionUser.from_user(user) if user else None,
        error=client.error,
    )


@router.get("/session", response_model=SessionResponse)
def current_session(store: SessionStore = Depends(get_session_store)) -> SessionResponse:
    session = store.session
    if session is None:
        raise HTTPException(status_code=401, detail="unauthorized")
    return SessionResponse.from_session(session)


@router.post("/login", response_model=SessionResponse)
def login(
    request: LoginRequest,
    client: AuthClient = Depends(get_auth_client),
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    try:
        client.login(request.email, request.password)
    except AuthError as exc:
        raise _http_error(exc, failure_status=401) from exc
    session = store.session
    if session is None:
        raise HTTPException(status_code=401, detail="unauthorized")
    return SessionResponse.from_session(session)


@router.post("/logout", response_model=OkResponse)
def logout(client: AuthClient = Depends(get_auth_client)) -> OkResponse:
    client.logout()
    return OkResponse()


@router.post("/register", response_model=OkResponse)
def register(
    request: RegisterRequest,
    client: AuthClient = Depends(get_auth_client),
) -> OkResponse:
    try:
        message = client.register(request.name, request.email, request.password)
    except AuthError as exc:
        raise _http_error(exc) from exc
    return OkResponse(message=message)


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(
    request: ForgotPasswordRequest,
    client: AuthClient = Depends(get_auth_client),
    settings: AuthSettings = Depends(get_settings),
) -> ForgotPasswordResponse:
    try:
        reset_token = client.forgot_password(request.email)
    except AuthError as exc:
        raise _http_error(exc) from exc
    return ForgotPasswordResponse(
        message=_FORGOT_PASSWORD_MESSAGE,
        reset_token=reset_token if settings.expose_reset_token else None,
    )


@router.get("/verify-token/{token}", response_model=VerifyTokenResponse)
def verify_token(
    token: str,
    client: AuthClient = Depends(get_auth_client),
) -> VerifyTokenResponse:
    check = client.verify_reset_token(token)
    return VerifyTokenResponse(valid=check.valid, email=check.email)


@router.post("/reset-password", response_model=OkResponse)
def reset_password(
    request: ResetPasswordRequest,
    client: AuthClient = Depends(get_auth_client),
) -> OkResponse:
    try:
        client.reset_password(request.token, request.new_password)
    except AuthError as exc:
        raise _http_error(exc) from exc
    return OkResponse()


@router.delete("/error", response_model=OkResponse)
def clear_error(client: AuthClient = Depends(get_auth_client)) -> OkResponse:
    client.clear_error()
    return OkResponse()
