from __future__ import annotations

from typing import Callable, Optional, cast

from fastapi import HTTPException, Request

from services.auth import AuthClient, RouteGuard, Session, SessionStore
from services.auth.session import Role
from services.auth.settings import AuthSettings
from services.ninos import ChildService


def get_session_store(request: Request) -> SessionStore:
    return cast(SessionStore, request.app.state.session_store)


def get_auth_client(request: Request) -> AuthClient:
    return cast(AuthClient, request.app.state.auth_client)


def get_route_guard(request: Request) -> RouteGuard:
    return cast(RouteGuard, request.app.state.route_guard)


def get_child_service(request: Request) -> ChildService:
    return cast(ChildService, request.app.state.child_service)


def get_settings(request: Request) -> AuthSettings:
    return cast(AuthSettings, request.app.state.auth_settings)


def require_view(required_role: Optional[Role] = None) -> Callable[[Request], Session]:
    """Dependency gating a protected route through the route guard.

    A pending rehydration answers 503; a missing or under-privileged session
    answers 303 pointing at the login view.
    """

    def _guard(request: Request) -> Session:
        decision = get_route_guard(request).check(required_role)
        if decision.status == "loading":
            raise HTTPException(status_code=503, detail="session loading")
        if decision.status == "redirect" or decision.session is None:
            raise HTTPException(
                status_code=303,
                detail="login required",
                headers={"Location": decision.location or "/login"},
            )
        return decision.session

    return _guard
