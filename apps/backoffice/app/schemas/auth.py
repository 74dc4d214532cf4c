from __future__ import annotations

from typing import Optional

from services.auth.session import Session, UserInfo

from .common import ApiModel


class LoginRequest(ApiModel):
    # Empty defaults let the auth client report missing fields itself.
    email: str = ""
    password: str = ""


class RegisterRequest(ApiModel):
    name: str = ""
    email: str = ""
    password: str = ""


class ForgotPasswordRequest(ApiModel):
    email: str = ""


class ResetPasswordRequest(ApiModel):
    token: str = ""
    new_password: str = ""


class SessionUser(ApiModel):
    id: str
    email: str
    name: str
    role: Optional[str] = None

    @classmethod
    def from_user(cls, user: UserInfo) -> "SessionUser":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class SessionResponse(ApiModel):
    user: SessionUser
    expires_at: Optional[str] = None

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        expires_at = session.expires_at.isoformat() if session.expires_at else None
        return cls(user=SessionUser.from_user(session.user), expires_at=expires_at)


class ForgotPasswordResponse(ApiModel):
    ok: bool = True
    message: str
    reset_token: Optional[str] = None


class VerifyTokenResponse(ApiModel):
    valid: bool
    email: Optional[str] = None


class LoginView(ApiModel):
    authenticated: bool
    is_loading: bool
    user: Optional[SessionUser] = None
    error: Optional[str] = None
