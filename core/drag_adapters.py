# core/drag_adapters.py
"""
Adaptadores de arrastre: envuelven una capa existente del mapa ligada a
una entidad y traducen su ciclo dragstart/drag/dragend en
`on_drag_end(entity, nuevas_coordenadas)`.

No llaman al servidor; eso lo hace quien recibe el callback.
"""
from loguru import logger

from core.projection import ProjectionError

POINT_DRAG_OPACITY = 0.6
POINT_MOVE_OPACITY = 0.7

POLYGON_DRAG_STYLE = {"opacity": 0.5, "fill_opacity": 0.3, "dash": [5, 10]}
POLYGON_MOVE_EXTRA_WEIGHT = 2


class DragAdapter:
    """
    Contrato común. Las subclases definen el estilo durante el arrastre y
    cómo leer las coordenadas (lat, lng) de la capa.

    Las suscripciones se toman en el constructor y se sueltan en release().
    """

    def __init__(self, overlay, entity, on_drag_end, map_widget=None):
        self.overlay = overlay
        self.entity = entity
        self._on_drag_end = on_drag_end
        self._map = map_widget
        self._baseline = overlay.style()
        self._active = True

        events = overlay.events
        events.drag_started.connect(self._handle_drag_start)
        events.dragged.connect(self._handle_drag)
        events.drag_ended.connect(self._handle_drag_end)
        overlay.set_draggable(True)

    @property
    def active(self) -> bool:
        return self._active

    def release(self):
        if not self._active:
            return
        events = self.overlay.events
        events.drag_started.disconnect(self._handle_drag_start)
        events.dragged.disconnect(self._handle_drag)
        events.drag_ended.disconnect(self._handle_drag_end)
        self.overlay.set_draggable(False)
        self._active = False

    def _handle_drag_start(self):
        self._apply_drag_style()
        if self._map is not None:
            self._map.set_move_cursor(True)

    def _handle_drag(self):
        self._apply_move_feedback()

    def _handle_drag_end(self):
        try:
            coordinates = self._read_coordinates()
        except ProjectionError as e:
            logger.warning(f"No se pudo leer la posición de la entidad {self.entity.id}: {e}")
            coordinates = None
        finally:
            self._restore_style()
            if self._map is not None:
                self._map.set_move_cursor(False)

        if coordinates:
            self._on_drag_end(self.entity, coordinates)

    def _restore_style(self):
        self.overlay.set_style(**self._baseline_style())

    def _baseline_style(self) -> dict:
        style = dict(self._baseline)
        style["dash"] = style.get("dash") or []
        return style

    def _apply_drag_style(self):
        raise NotImplementedError

    def _apply_move_feedback(self):
        pass

    def _read_coordinates(self) -> list[tuple[float, float]]:
        raise NotImplementedError


class PointDragAdapter(DragAdapter):
    def _apply_drag_style(self):
        self.overlay.set_opacity(POINT_DRAG_OPACITY)

    def _apply_move_feedback(self):
        self.overlay.set_opacity(POINT_MOVE_OPACITY)

    def _restore_style(self):
        self.overlay.set_opacity(1.0)

    def _read_coordinates(self):
        lat, lng = self.overlay.lat_lng()
        return [(lat, lng)]


class PolygonDragAdapter(DragAdapter):
    def _apply_drag_style(self):
        self.overlay.set_style(**POLYGON_DRAG_STYLE)

    def _apply_move_feedback(self):
        self.overlay.set_style(weight=self._baseline["weight"] + POLYGON_MOVE_EXTRA_WEIGHT)

    def _read_coordinates(self):
        # anillo abierto, tal como lo entrega el mapa
        return list(self.overlay.lat_lngs())
