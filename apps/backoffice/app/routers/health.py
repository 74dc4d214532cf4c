from __future__ import annotations

from fastapi import APIRouter, Depends

from app.deps import get_session_store
from app.schemas.common import HealthResponse
from services.auth import SessionStore

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(store: SessionStore = Depends(get_session_store)) -> HealthResponse:
    if store.is_loading:
        return HealthResponse(session="loading")
    return HealthResponse(session="active" if store.is_authenticated else "empty")
