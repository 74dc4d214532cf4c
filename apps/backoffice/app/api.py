from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import os
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from app.errors import (
    child_api_error_handler,
    http_exception_handler,
    redis_error_handler,
    transport_error_handler,
    validation_exception_handler,
    value_error_handler,
)
from app.middleware import add_request_context
import app.routers.auth as auth_router
import app.routers.health as health_router
import app.routers.ninos as ninos_router
from services.api.endpoints import ApiEndpoints, get_api_endpoints
from services.api.http import AuthorizedHttpClient, TransportError
from services.auth import (
    AuthClient,
    AuthSettings,
    RouteGuard,
    SessionStore,
    build_session_storage,
    get_auth_settings,
)
from services.ninos import ChildApiError, ChildService
from services.structured_log import log_event

logger = logging.getLogger(__name__)


def _cors_allow_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS")
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return ["http://localhost:3000"]


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    store: SessionStore = app.state.session_store
    restored = store.initialize()
    log_event(
        logger,
        event="backoffice_start",
        session="active" if restored else "empty",
    )
    yield


def create_app(
    *,
    session_store: Optional[SessionStore] = None,
    settings: Optional[AuthSettings] = None,
    endpoints: Optional[ApiEndpoints] = None,
) -> FastAPI:
    """Build the back-office app around one session store.

    The store is rehydrated from persisted storage when the app starts; until
    then protected routes answer with a loading state.
    """
    settings = settings or get_auth_settings()
    endpoints = endpoints or get_api_endpoints()
    store = session_store or SessionStore(build_session_storage(settings))

    app = FastAPI(
        title="Huahuacuna Back-office",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=_lifespan,
    )
    app.state.auth_settings = settings
    app.state.session_store = store
    app.state.auth_client = AuthClient(store, endpoints=endpoints)
    app.state.route_guard = RouteGuard(store, login_path=settings.login_path)
    app.state.child_service = ChildService(
        AuthorizedHttpClient(store), endpoints=endpoints
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(add_request_context)

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(TransportError, transport_error_handler)
    app.add_exception_handler(ChildApiError, child_api_error_handler)
    app.add_exception_handler(RedisError, redis_error_handler)

    app.include_router(health_router.router)
    app.include_router(auth_router.views)
    app.include_router(auth_router.router)
    app.include_router(ninos_router.router)

    return app
