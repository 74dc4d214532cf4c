from __future__ import annotations

from typing import Literal, Optional

ErrorCategory = Literal["validation", "transport", "backend", "conflict"]


class AuthError(Exception):
    category: ErrorCategory = "backend"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthValidationError(AuthError):
    category: ErrorCategory = "validation"


class MissingCredentialsError(AuthValidationError):
    pass


class InvalidEmailError(AuthValidationError):
    pass


class WeakPasswordError(AuthValidationError):
    pass


class AuthTransportError(AuthError):
    category: ErrorCategory = "transport"

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class AuthenticationFailedError(AuthError):
    category: ErrorCategory = "backend"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DuplicateSubmissionError(AuthError):
    category: ErrorCategory = "conflict"

    def __init__(self, message: str = "a request is already in progress") -> None:
        super().__init__(message)
