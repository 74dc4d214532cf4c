from __future__ import annotations

from datetime import date
import logging
from typing import Any, List, Literal, Optional
from urllib import parse as urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from services.api.endpoints import ApiEndpoints, get_api_endpoints
from services.api.http import ApiResponse, AuthorizedHttpClient
from services.structured_log import log_event

logger = logging.getLogger("huahuacuna.ninos")

ChildStatus = Literal["DISPONIBLE", "EN_PROCESO", "APADRINADO"]
CHILD_STATUSES: tuple[ChildStatus, ...] = ("DISPONIBLE", "EN_PROCESO", "APADRINADO")


class ChildUpdate(BaseModel):
    """Editable fields of a child record. Status is changed separately."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    given_names: str = Field(alias="nombres", min_length=1)
    surnames: str = Field(alias="apellidos", min_length=1)
    birth_date: date = Field(alias="fechaNacimiento")
    biography: str = Field(default="", alias="historia")
    main_photo_url: str = Field(alias="urlFotoPrincipal")


class ChildCreate(ChildUpdate):
    status: ChildStatus = Field(default="DISPONIBLE", alias="estado")


class ChildRecord(ChildCreate):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    status: ChildStatus = Field(alias="estado")


class ChildStatusChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    new_status: ChildStatus = Field(alias="nuevoEstado")


class ChildApiError(RuntimeError):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ChildNotFoundError(ChildApiError):
    pass


def _wire(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


class ChildService:
    """Child-record CRUD against the backend, always sent with the session token."""

    def __init__(
        self,
        http: AuthorizedHttpClient,
        *,
        endpoints: Optional[ApiEndpoints] = None,
    ) -> None:
        self._http = http
        self._endpoints = endpoints or get_api_endpoints()

    def _check(self, response: ApiResponse, *, nino_id: Optional[int] = None) -> None:
        if response.ok:
            return
        message = response.error_message() or f"backend returned status {response.status}"
        log_event(
            logger,
            event="nino_request_rejected",
            level=logging.WARNING,
            status=response.status,
            nino_id=nino_id,
        )
        if response.status == 404:
            raise ChildNotFoundError(404, message)
        raise ChildApiError(response.status, message)

    @staticmethod
    def _record(data: Any) -> ChildRecord:
        try:
            return ChildRecord.model_validate(data)
        except ValidationError as exc:
            raise ChildApiError(502, "backend returned an invalid child record") from exc

    def list(self, status: Optional[ChildStatus] = None) -> List[ChildRecord]:
        url = self._endpoints.ninos
        if status is not None:
            url = f"{url}?{urlparse.urlencode({'estado': status})}"
        response = self._http.request_json("GET", url)
        self._check(response)
        if not isinstance(response.data, list):
            raise ChildApiError(502, "backend returned an invalid child list")
        return [self._record(item) for item in response.data]

    def get(self, nino_id: int) -> ChildRecord:
        response = self._http.request_json("GET", self._endpoints.nino(nino_id))
        self._check(response, nino_id=nino_id)
        return self._record(response.data)

    def create(self, data: ChildCreate) -> ChildRecord:
        response = self._http.request_json(
            "POST", self._endpoints.ninos, payload=_wire(data)
        )
        self._check(response)
        record = self._record(response.data)
        log_event(logger, event="nino_created", nino_id=record.id)
        return record

    def update(self, nino_id: int, data: ChildUpdate) -> ChildRecord:
        # Only the editable fields travel; status has its own endpoint.
        payload = ChildUpdate.model_validate(
            data.model_dump(include=set(ChildUpdate.model_fields))
        )
        response = self._http.request_json(
            "PUT", self._endpoints.nino(nino_id), payload=_wire(payload)
        )
        self._check(response, nino_id=nino_id)
        log_event(logger, event="nino_updated", nino_id=nino_id)
        return self._record(response.data)

    def change_status(self, nino_id: int, status: ChildStatus) -> ChildRecord:
        body = ChildStatusChange(new_status=status)
        response = self._http.request_json(
            "PATCH", self._endpoints.nino_estado(nino_id), payload=_wire(body)
        )
        self._check(response, nino_id=nino_id)
        log_event(logger, event="nino_status_changed", nino_id=nino_id, status=status)
        return self._record(response.data)

    def delete(self, nino_id: int) -> None:
        response = self._http.request_json("DELETE", self._endpoints.nino(nino_id))
        self._check(response, nino_id=nino_id)
        log_event(logger, event="nino_deleted", nino_id=nino_id)
