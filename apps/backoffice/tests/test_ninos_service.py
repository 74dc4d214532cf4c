from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Callable

import pytest

from services.api.endpoints import ApiEndpoints
from services.api.http import AuthorizedHttpClient
from services.auth.session import SessionStore, UserInfo
from services.ninos import (
    ChildApiError,
    ChildCreate,
    ChildNotFoundError,
    ChildRecord,
    ChildService,
    ChildUpdate,
)

if TYPE_CHECKING:
    from conftest import FakeBackend


def _record(nino_id: int = 4, **overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": nino_id,
        "nombres": "Lucía",
        "apellidos": "Quispe",
        "fechaNacimiento": "2015-03-09",
        "historia": "Le gusta dibujar.",
        "urlFotoPrincipal": "https://cdn.example.org/ninos/4.jpg",
        "estado": "DISPONIBLE",
    }
    data.update(overrides)
    return data


@pytest.fixture
def service(
    store: SessionStore,
    backend: FakeBackend,
    endpoints: ApiEndpoints,
    make_token: Callable[..., str],
) -> ChildService:
    store.initialize()
    store.set_session(
        UserInfo(id="1", email="a@b.com", name="Ana", role="ADMIN"),
        make_token(),
    )
    return ChildService(AuthorizedHttpClient(store, request=backend), endpoints=endpoints)


def test_list_sends_bearer_token(
    service: ChildService,
    backend: FakeBackend,
    endpoints: ApiEndpoints,
    store: SessionStore,
) -> None:
    backend.respond("GET", endpoints.ninos, 200, [_record(4), _record(5, estado="APADRINADO")])

    records = service.list()

    assert [record.id for record in records] == [4, 5]
    assert records[1].status == "APADRINADO"
    assert records[0].birth_date == date(2015, 3, 9)
    assert backend.calls[0]["headers"]["Authorization"] == store.get_authorization_header_value()


def test_list_filters_by_status(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("GET", f"{endpoints.ninos}?estado=EN_PROCESO", 200, [])

    assert service.list("EN_PROCESO") == []


def test_list_rejects_non_list_payload(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("GET", endpoints.ninos, 200, {"items": []})

    with pytest.raises(ChildApiError) as caught:
        service.list()
    assert caught.value.status_code == 502


def test_get_missing_record_raises_not_found(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("GET", endpoints.nino(99), 404, {"message": "Niño no encontrado"})

    with pytest.raises(ChildNotFoundError, match="Niño no encontrado"):
        service.get(99)


def test_get_invalid_record_is_bad_gateway(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("GET", endpoints.nino(4), 200, {"id": 4})

    with pytest.raises(ChildApiError) as caught:
        service.get(4)
    assert caught.value.status_code == 502


def test_record_without_status_is_bad_gateway(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    record = _record(4)
    del record["estado"]
    backend.respond("GET", endpoints.nino(4), 200, record)

    with pytest.raises(ChildApiError) as caught:
        service.get(4)
    assert caught.value.status_code == 502


def test_create_sends_wire_names(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("POST", endpoints.ninos, 201, _record(7))
    payload = ChildCreate.model_validate(
        {
            "nombres": "Lucía",
            "apellidos": "Quispe",
            "fechaNacimiento": "2015-03-09",
            "historia": "Le gusta dibujar.",
            "urlFotoPrincipal": "https://cdn.example.org/ninos/4.jpg",
        }
    )

    record = service.create(payload)

    assert isinstance(record, ChildRecord)
    assert record.id == 7
    assert backend.calls[0]["payload"] == {
        "nombres": "Lucía",
        "apellidos": "Quispe",
        "fechaNacimiento": "2015-03-09",
        "historia": "Le gusta dibujar.",
        "urlFotoPrincipal": "https://cdn.example.org/ninos/4.jpg",
        "estado": "DISPONIBLE",
    }


def _editable(**overrides: Any) -> dict[str, Any]:
    data = _record(**overrides)
    data.pop("id")
    data.pop("estado")
    return data


def test_update_never_sends_status(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("PUT", endpoints.nino(4), 200, _record(4, historia="Nueva historia"))
    # A full create payload carries a status; the update must drop it.
    changes = ChildCreate.model_validate(
        {**_editable(historia="Nueva historia"), "estado": "APADRINADO"}
    )

    record = service.update(4, changes)

    assert record.biography == "Nueva historia"
    assert "estado" not in backend.calls[0]["payload"]
    assert backend.calls[0]["payload"]["historia"] == "Nueva historia"
    assert backend.calls[0]["url"] == endpoints.nino(4)


def test_change_status_patches_estado(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("PATCH", endpoints.nino_estado(4), 200, _record(4, estado="EN_PROCESO"))

    record = service.change_status(4, "EN_PROCESO")

    assert record.status == "EN_PROCESO"
    assert backend.calls[0]["payload"] == {"nuevoEstado": "EN_PROCESO"}


def test_delete_reports_backend_conflict(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("DELETE", endpoints.nino(4), 409, {"error": "Niño apadrinado"})

    with pytest.raises(ChildApiError, match="Niño apadrinado") as caught:
        service.delete(4)
    assert caught.value.status_code == 409


def test_delete_succeeds_without_body(
    service: ChildService, backend: FakeBackend, endpoints: ApiEndpoints
) -> None:
    backend.respond("DELETE", endpoints.nino(4), 204, None)

    service.delete(4)

    assert backend.calls[0]["method"] == "DELETE"


def test_child_update_forbids_unknown_fields() -> None:
    with pytest.raises(ValueError):
        ChildUpdate.model_validate({**_editable(), "sponsor": "x"})
