from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from app.deps import get_child_service, require_view
from services.auth import Session
from services.ninos import (
    ChildCreate,
    ChildRecord,
    ChildService,
    ChildStatus,
    ChildStatusChange,
    ChildUpdate,
)

router = APIRouter(prefix="/api/dashboard/ninos", tags=["ninos"])

_viewer = require_view()
_admin = require_view("ADMIN")


@router.get("", response_model=List[ChildRecord], response_model_by_alias=True)
def list_ninos(
    estado: Optional[ChildStatus] = Query(None),
    _: Session = Depends(_viewer),
    service: ChildService = Depends(get_child_service),
) -> List[ChildRecord]:
    return service.list(estado)


@router.get("/{nino_id}", response_model=ChildRecord, response_model_by_alias=True)
def get_nino(
    nino_id: int,
    _: Session = Depends(_viewer),
    service: ChildService = Depends(get_child_service),
) -> ChildRecord:
    return service.get(nino_id)


@router.post(
    "",
    response_model=ChildRecord,
    response_model_by_alias=True,
    status_code=201,
)
def create_nino(
    request: ChildCreate,
    _: Session = Depends(_admin),
    service: ChildService = Depends(get_child_service),
) -> ChildRecord:
    return service.create(request)


@router.put("/{nino_id}", response_model=ChildRecord, response_model_by_alias=True)
def update_nino(
    nino_id: int,
    request: ChildUpdate,
    _: Session = Depends(_admin),
    service: ChildService = Depends(get_child_service),
) -> ChildRecord:
    return service.update(nino_id, request)


@router.patch(
    "/{nino_id}/estado",
    response_model=ChildRecord,
    response_model_by_alias=True,
)
def change_nino_status(
    nino_id: int,
    request: ChildStatusChange,
    _: Session = Depends(_admin),
    service: ChildService = Depends(get_child_service),
) -> ChildRecord:
    return service.change_status(nino_id, request.new_status)


@router.delete("/{nino_id}", status_code=204)
def delete_nino(
    nino_id: int,
    _: Session = Depends(_admin),
    service: ChildService = Depends(get_child_service),
) -> Response:
    service.delete(nino_id)
    return Response(status_code=204)
