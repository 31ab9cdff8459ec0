# api/entity_store.py
"""
Copia local de las entidades del servidor y flujo de guardado.

Las respuestas llegan de forma asíncrona a través de un runner; cada
operación termina en `notify(level, message)` y, si se pasa, en
`callback(ok)`.
"""
from loguru import logger
from PySide6.QtCore import QObject, Signal

from api.client import ApiClient
from api.worker import ThreadedRunner
from core.geometry_codec import encode
from core.validator import ValidationError, raise_for_errors, validate_form

SUCCESS = "success"
ERROR = "error"


class EntityStore(QObject):
    entities_changed = Signal(list)
    loading_changed = Signal(bool)
    notify = Signal(str, str)
    drag_state_changed = Signal(int, bool)
    hidden_changed = Signal(object)

    def __init__(self, client: ApiClient, runner=None, parent=None):
        super().__init__(parent)
        self._client = client
        self._run = runner or ThreadedRunner(self).run
        self._entities = []
        self._loading = False
        self.error = None
        self._dragging = set()
        self._hidden = set()

    # --- Estado ---
    @property
    def client(self) -> ApiClient:
        return self._client

    @property
    def entities(self) -> list:
        return list(self._entities)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def hidden_ids(self) -> frozenset:
        return frozenset(self._hidden)

    def is_dragging(self, entity_id) -> bool:
        return entity_id in self._dragging

    def find(self, entity_id):
        for e in self._entities:
            if e.id == entity_id:
                return e
        return None

    def toggle_hidden(self, entity_id):
        if entity_id in self._hidden:
            self._hidden.discard(entity_id)
        else:
            self._hidden.add(entity_id)
        self.hidden_changed.emit(self.hidden_ids)

    def _set_entities(self, entities):
        self._entities = list(entities)
        self.entities_changed.emit(self.entities)

    def _set_loading(self, loading: bool):
        self._loading = loading
        self.loading_changed.emit(loading)

    def _fail(self, message, callback=None):
        logger.warning(f"Operación remota fallida: {message}")
        self.notify.emit(ERROR, message)
        if callback:
            callback(False)

    # --- Operaciones remotas ---
    def fetch(self):
        self._set_loading(True)
        self.error = None

        def on_success(resp):
            self._set_loading(False)
            if resp.is_success and resp.data is not None:
                self._set_entities(resp.data)
            else:
                self.error = resp.message or "No se pudieron cargar las entidades"
                self._fail(self.error)

        def on_failure(message):
            self._set_loading(False)
            self.error = message
            self._fail(message)

        self._run(self._client.list_entities, on_success, on_failure)

    def create(self, name: str, geometry: str, kind, callback=None):
        def on_success(resp):
            if resp.is_success and resp.data is not None:
                self._set_entities(self._entities + [resp.data])
                self.notify.emit(SUCCESS, "Entidad añadida correctamente")
                if callback:
                    callback(True)
            else:
                self._fail(resp.message or "No se pudo añadir la entidad", callback)

        self._run(
            lambda: self._client.create_entity(name, geometry, kind),
            on_success,
            lambda message: self._fail(message, callback),
        )

    def update(self, entity_id: int, name: str, geometry: str, kind, callback=None):
        def on_success(resp):
            if resp.is_success and resp.data is not None:
                self._set_entities([resp.data if e.id == entity_id else e for e in self._entities])
                self.notify.emit(SUCCESS, "Entidad actualizada correctamente")
                if callback:
                    callback(True)
            else:
                self._fail(resp.message or "No se pudo actualizar la entidad", callback)

        self._run(
            lambda: self._client.update_entity(entity_id, name, geometry, kind),
            on_success,
            lambda message: self._fail(message, callback),
        )

    def delete(self, entity_id: int, callback=None):
        def on_success(resp):
            if resp.is_success:
                self._hidden.discard(entity_id)
                self._set_entities([e for e in self._entities if e.id != entity_id])
                self.notify.emit(SUCCESS, "Entidad eliminada correctamente")
                if callback:
                    callback(True)
            else:
                self._fail(resp.message or "No se pudo eliminar la entidad", callback)

        self._run(
            lambda: self._client.delete_entity(entity_id),
            on_success,
            lambda message: self._fail(message, callback),
        )

    def save(self, request: dict, callback=None):
        """`request` con id -> update, sin id -> create. Nada llega al servidor si no es válido."""
        try:
            raise_for_errors(validate_form(request.get("name"), request.get("geometry"), request.get("kind")))
        except ValidationError as e:
            self._fail(e.message, callback)
            return
        if request.get("id") is not None:
            self.update(request["id"], request["name"], request["geometry"], request["kind"], callback)
        else:
            self.create(request["name"], request["geometry"], request["kind"], callback)

    # --- Arrastre ---
    def update_geometry_from_drag(self, entity, coordinates, callback=None):
        """
        Guarda la nueva posición de una entidad arrastrada. La entidad queda
        marcada como "en arrastre" hasta que la petición termina, con éxito o no.
        Si falla, la capa del mapa no vuelve a su sitio.
        """
        geometry = encode(coordinates, entity.kind)
        self._dragging.add(entity.id)
        self.drag_state_changed.emit(entity.id, True)

        def settle(ok):
            self._dragging.discard(entity.id)
            self.drag_state_changed.emit(entity.id, False)
            if callback:
                callback(ok)

        self.update(entity.id, entity.name, geometry, entity.kind, settle)
