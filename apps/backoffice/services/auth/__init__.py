from .client import AuthClient, TokenCheck, derive_role, is_valid_email
from .errors import (
    AuthError,
    AuthTransportError,
    AuthValidationError,
    AuthenticationFailedError,
    DuplicateSubmissionError,
    InvalidEmailError,
    MissingCredentialsError,
    WeakPasswordError,
)
from .guard import GuardDecision, RouteGuard
from .session import Session, SessionStore, UserInfo
from .settings import AuthSettings, get_auth_settings
from .storage import build_session_storage

__all__ = [
    "AuthClient",
    "AuthError",
    "AuthSettings",
    "AuthTransportError",
    "AuthValidationError",
    "AuthenticationFailedError",
    "DuplicateSubmissionError",
    "GuardDecision",
    "InvalidEmailError",
    "MissingCredentialsError",
    "RouteGuard",
    "Session",
    "SessionStore",
    "TokenCheck",
    "UserInfo",
    "WeakPasswordError",
    "build_session_storage",
    "derive_role",
    "get_auth_settings",
    "is_valid_email",
]
