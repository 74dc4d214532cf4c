from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from .session import Role, Session, SessionStore

GuardStatus = Literal["loading", "allow", "redirect"]


@dataclass(frozen=True)
class GuardDecision:
    status: GuardStatus
    session: Optional[Session] = None
    location: Optional[str] = None


class RouteGuard:
    def __init__(self, session_store: SessionStore, *, login_path: str = "/login") -> None:
        self.session_store = session_store
        self.login_path = login_path

    def check(self, required_role: Optional[Role] = None) -> GuardDecision:
        # Never decide before rehydration finishes: "no session yet" is not "logged out".
        if self.session_store.is_loading:
            return GuardDecision(status="loading")
        session = self.session_store.session
        if session is None:
            return GuardDecision(status="redirect", location=self.login_path)
        if required_role is not None and session.user.role != required_role:
            return GuardDecision(status="redirect", location=self.login_path)
        return GuardDecision(status="allow", session=session)

    def watch(
        self,
        callback: Callable[[GuardDecision], None],
        required_role: Optional[Role] = None,
    ) -> Callable[[], None]:
        """Re-run ``check`` whenever the session reference changes."""

        def _on_change(_: Optional[Session]) -> None:
            callback(self.check(required_role))

        return self.session_store.subscribe(_on_change)
