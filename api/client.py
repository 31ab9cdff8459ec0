# api/client.py
"""Cliente HTTP del almacén remoto de entidades (/Points)."""
from dataclasses import dataclass
from typing import Any, Optional

import requests
from loguru import logger

from core.entity import Entity, EntityKind

DEFAULT_ERROR = "Network error occurred"


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class ApiResponse:
    is_success: bool
    message: str
    data: Any = None


def entity_from_json(payload: dict) -> Entity:
    try:
        return Entity(
            id=int(payload["id"]),
            name=str(payload["name"]),
            geometry=str(payload["geometry"]),
            kind=EntityKind(int(payload["coordinateType"])),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ApiError(f"Entidad inválida en la respuesta: {e}")


def entity_params(name: str, geometry: str, kind) -> dict:
    return {
        "geometry": geometry,
        "name": name,
        "coordinateType": str(int(EntityKind(kind))),
    }


class ApiClient:
    """
    Envuelve las llamadas al API; cada método devuelve un ApiResponse
    (sobre {isSuccess, message, data}) o lanza ApiError.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, endpoint: str, params: dict = None) -> ApiResponse:
        url = f"{self.base_url}{endpoint}"
        logger.info(f"{method} {url}")
        try:
            response = self.session.request(method, url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(f"{DEFAULT_ERROR}: {e}")

        if not response.ok:
            try:
                body = response.json()
                message = body.get("message") or DEFAULT_ERROR
            except (ValueError, AttributeError):
                message = DEFAULT_ERROR
            raise ApiError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError:
            raise ApiError("Respuesta no válida del servidor", status_code=response.status_code)
        if not isinstance(body, dict):
            raise ApiError("Respuesta no válida del servidor", status_code=response.status_code)

        return ApiResponse(
            is_success=bool(body.get("isSuccess")),
            message=body.get("message") or "",
            data=body.get("data"),
        )

    def _entity_response(self, resp: ApiResponse) -> ApiResponse:
        if resp.is_success and resp.data is not None:
            resp.data = entity_from_json(resp.data)
        return resp

    def list_entities(self) -> ApiResponse:
        resp = self._request("GET", "/Points")
        if resp.is_success and resp.data is not None:
            if not isinstance(resp.data, list):
                raise ApiError("Se esperaba una lista de entidades")
            resp.data = [entity_from_json(item) for item in resp.data]
        return resp

    def get_entity(self, entity_id: int) -> ApiResponse:
        return self._entity_response(self._request("GET", f"/Points/{entity_id}"))

    def create_entity(self, name: str, geometry: str, kind) -> ApiResponse:
        return self._entity_response(
            self._request("POST", "/Points", params=entity_params(name, geometry, kind))
        )

    def update_entity(self, entity_id: int, name: str, geometry: str, kind) -> ApiResponse:
        return self._entity_response(
            self._request("PUT", f"/Points/{entity_id}", params=entity_params(name, geometry, kind))
        )

    def delete_entity(self, entity_id: int) -> ApiResponse:
        return self._request("DELETE", f"/Points/{entity_id}")
