# core/draw_controller.py
"""
Controlador de dibujo: máquina de estados off <-> drawing(kind).

Es el único dueño del grupo de capas temporal (scratch) y de la ranura
de herramienta activa del mapa. Nunca hay dos herramientas armadas a la vez:
la anterior se deshabilita siempre antes de habilitar la nueva.
"""
from enum import Enum

from loguru import logger
from PySide6.QtCore import QObject, QTimer, Signal

from core.entity import EntityKind
from core.geometry_codec import close_ring, encode

MARKER = "marker"
POLYLINE = "polyline"
POLYGON = "polygon"

# Las líneas dibujadas se completan solas al llegar a este número de vértices.
LINE_AUTO_COMPLETE_VERTICES = 2


class DrawingMode(Enum):
    OFF = 0
    POINT = EntityKind.POINT.value
    LINE = EntityKind.LINE.value
    POLYGON = EntityKind.POLYGON.value

    @property
    def kind(self):
        return None if self is DrawingMode.OFF else EntityKind(self.value)

    @property
    def native_type(self):
        return {
            DrawingMode.POINT: MARKER,
            DrawingMode.LINE: POLYLINE,
            DrawingMode.POLYGON: POLYGON,
        }.get(self)

    @classmethod
    def for_kind(cls, kind) -> "DrawingMode":
        if kind is None:
            return cls.OFF
        return cls(EntityKind(kind).value)


def defer_to_next_tick(fn):
    QTimer.singleShot(0, fn)


class DrawController(QObject):
    """
    Convierte los eventos de la herramienta de dibujo del mapa en
    `shape_drawn(kind, geometry_text)`.

    `map_widget` debe ofrecer: create_overlay_group(), remove_overlay_group(),
    create_draw_tool(native_type) y las señales shape_created / vertex_added.
    """

    shape_drawn = Signal(object, str)
    mode_changed = Signal(object)

    def __init__(self, map_widget, defer=None, parent=None):
        super().__init__(parent)
        self._map = map_widget
        self._defer = defer or defer_to_next_tick
        self._mode = DrawingMode.OFF
        self._tool = None
        self._vertex_listener = False
        self._scratch = map_widget.create_overlay_group()
        self._map.shape_created.connect(self._on_shape_created)
        self._torn_down = False

    @property
    def mode(self) -> DrawingMode:
        return self._mode

    @property
    def active_tool(self):
        return self._tool

    @property
    def scratch_group(self):
        return self._scratch

    def set_mode(self, mode):
        """
        Cambia de modo. Elegir otro tipo mientras se dibuja cancela el
        dibujo en curso; elegir el modo actual no hace nada.
        """
        if not isinstance(mode, DrawingMode):
            mode = DrawingMode.for_kind(mode)
        if self._torn_down or mode == self._mode:
            return

        logger.debug(f"Modo de dibujo: {self._mode.name} -> {mode.name}")
        self._release_tool()
        if mode is DrawingMode.OFF:
            self._set_mode(mode)
            return

        self._scratch.clear()
        tool = self._map.create_draw_tool(mode.native_type)
        tool.enable()
        self._tool = tool
        if mode is DrawingMode.LINE:
            self._map.vertex_added.connect(self._on_vertex_added)
            self._vertex_listener = True
        self._set_mode(mode)

    def start(self, kind):
        self.set_mode(DrawingMode.for_kind(kind))

    def cancel(self):
        self.set_mode(DrawingMode.OFF)

    def clear_scratch(self):
        self._scratch.clear()

    def teardown(self):
        if self._torn_down:
            return
        self._release_tool()
        self._map.shape_created.disconnect(self._on_shape_created)
        self._map.remove_overlay_group(self._scratch)
        self._torn_down = True
        self._set_mode(DrawingMode.OFF)

    def _set_mode(self, mode):
        changed = mode != self._mode
        self._mode = mode
        if changed:
            self.mode_changed.emit(mode)

    def _release_tool(self):
        if self._vertex_listener:
            self._map.vertex_added.disconnect(self._on_vertex_added)
            self._vertex_listener = False
        if self._tool is not None:
            self._tool.disable()
            self._tool = None

    def _on_vertex_added(self, *args):
        tool = self._tool
        if tool is not None and tool.vertex_count == LINE_AUTO_COMPLETE_VERTICES:
            # completar dentro de la notificación del vértice re-entra en la herramienta
            self._defer(lambda: self._force_complete(tool))

    def _force_complete(self, tool):
        if tool is self._tool and tool.enabled:
            tool.complete_shape()

    def _on_shape_created(self, native_type, overlay):
        if self._torn_down:
            return
        self._scratch.add(overlay)
        try:
            kind, geometry = self._extract(native_type, overlay)
        except (TypeError, ValueError, IndexError, AttributeError) as e:
            logger.warning(f"Forma '{native_type}' descartada: {e}")
            kind, geometry = None, ""

        if kind is not None and geometry:
            self.shape_drawn.emit(kind, geometry)
        elif kind is None:
            logger.debug(f"Tipo de capa ignorado: {native_type!r}")
        self.set_mode(DrawingMode.OFF)

    @staticmethod
    def _extract(native_type, overlay):
        if native_type == MARKER:
            lat, lng = overlay.lat_lng()
            return EntityKind.POINT, encode([(lat, lng)])
        if native_type == POLYLINE:
            return EntityKind.LINE, encode(overlay.lat_lngs())
        if native_type == POLYGON:
            return EntityKind.POLYGON, encode(close_ring(overlay.lat_lngs()))
        return None, ""
