# widgets/map_canvas.py
"""
Lienzo de mapa sobre QGraphicsView.

Ofrece lo que el controlador de dibujo y los adaptadores de arrastre
consumen: capas (marker / polyline / polygon) arrastrables, grupos de
capas, herramientas de dibujo de un solo tipo y las señales `clicked`,
`shape_created` y `vertex_added`.
"""
import math

from loguru import logger
from PySide6.QtCore import QObject, QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QBrush, QColor, QPainter, QPen
from PySide6.QtWidgets import (
    QGraphicsEllipseItem,
    QGraphicsItem,
    QGraphicsPathItem,
    QGraphicsScene,
    QGraphicsView,
)

from core.entity import EntityKind, kind_color, kind_label
from core.geometry import GeometryBuilder
from core.geometry_codec import decode
from core.projection import MapProjection, ProjectionError

MARKER = "marker"
POLYLINE = "polyline"
POLYGON = "polygon"

NATIVE_TYPE_FOR_KIND = {
    EntityKind.POINT: MARKER,
    EntityKind.LINE: POLYLINE,
    EntityKind.POLYGON: POLYGON,
}

MARKER_RADIUS = 6
CLICK_TOLERANCE_PX = 4
CLOSE_RING_TOLERANCE_PX = 10
# ancho de la tierra en km para 256 px a zoom 0
WORLD_WIDTH_KM = 40075.016686
GRATICULE_STEP = 10

DRAW_COLOR = "#3388ff"


class OverlayEvents(QObject):
    drag_started = Signal()
    dragged = Signal()
    drag_ended = Signal()
    clicked = Signal()


class _OverlayMixin:
    """Ciclo de arrastre común: press -> (dragstart, drag*) -> dragend, o click."""

    native_type = ""

    def _init_overlay(self, projection, color):
        self.events = OverlayEvents()
        self.projection = projection
        self.entity_id = None
        self.color = color
        self._draggable = False
        self._pressed = False
        self._moved = False
        self._style = {"opacity": 1.0, "fill_opacity": 0.0, "weight": 3, "dash": None}
        self.setAcceptedMouseButtons(Qt.LeftButton)

    def set_draggable(self, enabled: bool):
        self._draggable = enabled
        self.setFlag(QGraphicsItem.ItemIsMovable, enabled)

    def is_draggable(self) -> bool:
        return self._draggable

    def style(self) -> dict:
        return dict(self._style)

    def set_opacity(self, opacity: float):
        self.set_style(opacity=opacity)

    def set_style(self, opacity=None, fill_opacity=None, weight=None, dash=None):
        if opacity is not None:
            self._style["opacity"] = opacity
        if fill_opacity is not None:
            self._style["fill_opacity"] = fill_opacity
        if weight is not None:
            self._style["weight"] = weight
        if dash is not None:
            # lista vacía = trazo continuo
            self._style["dash"] = list(dash) or None
        self._apply_style()

    def _apply_style(self):
        self.setOpacity(self._style["opacity"])

    def mousePressEvent(self, event):
        super().mousePressEvent(event)
        if event.button() == Qt.LeftButton:
            self._pressed = True
            self._moved = False
            # QGraphicsItem ignora el press si no es movible
            event.accept()

    def mouseMoveEvent(self, event):
        if self._pressed and self._draggable:
            if not self._moved:
                self._moved = True
                self.events.drag_started.emit()
            super().mouseMoveEvent(event)
            self.events.dragged.emit()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        super().mouseReleaseEvent(event)
        if not self._pressed:
            return
        self._pressed = False
        if self._moved:
            self._moved = False
            self.events.drag_ended.emit()
        else:
            self.events.clicked.emit()


class MarkerOverlay(_OverlayMixin, QGraphicsEllipseItem):
    native_type = MARKER

    def __init__(self, lat: float, lng: float, projection: MapProjection, color: str = kind_color(EntityKind.POINT)):
        super().__init__(-MARKER_RADIUS, -MARKER_RADIUS, 2 * MARKER_RADIUS, 2 * MARKER_RADIUS)
        self._init_overlay(projection, color)
        self.setFlag(QGraphicsItem.ItemIgnoresTransformations, True)
        self.setPen(QPen(QColor("#ffffff"), 2))
        self.setBrush(QBrush(QColor(color)))
        self.setZValue(10)
        self.set_lat_lng(lat, lng)

    def set_lat_lng(self, lat: float, lng: float):
        x, y = self.projection.to_scene(lat, lng)
        self.setPos(QPointF(x, y))
        self._lat_lng = (lat, lng)
        self._anchor = QPointF(self.pos())

    def lat_lng(self) -> tuple[float, float]:
        """Posición actual (lat, lng); exacta mientras no se haya movido."""
        if self.pos() == self._anchor:
            return self._lat_lng
        return self.projection.to_lat_lng(self.pos().x(), self.pos().y())


class _PathOverlay(_OverlayMixin, QGraphicsPathItem):
    closed = False

    def __init__(self, lat_lngs, projection: MapProjection, color: str):
        super().__init__()
        self._init_overlay(projection, color)
        self.setZValue(5)
        self.set_lat_lngs(lat_lngs)

    def set_lat_lngs(self, lat_lngs):
        self._lat_lngs = [tuple(p) for p in lat_lngs]
        self._scene_points = [self.projection.to_scene(lat, lng) for lat, lng in self._lat_lngs]
        self.setPos(QPointF(0, 0))
        path = GeometryBuilder.path_from_points(self._scene_points, closed=self.closed)
        if path is not None:
            self.setPath(path)
        self._apply_style()

    def lat_lngs(self) -> list[tuple[float, float]]:
        offset = self.pos()
        if offset == QPointF(0, 0):
            return list(self._lat_lngs)
        return [
            self.projection.to_lat_lng(x + offset.x(), y + offset.y())
            for x, y in self._scene_points
        ]

    def _apply_style(self):
        super()._apply_style()
        self.setPen(GeometryBuilder.pen_for(self.color, self._style["weight"], self._style["dash"]))
        if self.closed:
            self.setBrush(GeometryBuilder.brush_for(self.color, self._style["fill_opacity"]))


class PolylineOverlay(_PathOverlay):
    native_type = POLYLINE

    def __init__(self, lat_lngs, projection: MapProjection, color: str = kind_color(EntityKind.LINE)):
        super().__init__(lat_lngs, projection, color)


class PolygonOverlay(_PathOverlay):
    """El anillo se guarda abierto, como lo entrega el mapa."""
    native_type = POLYGON
    closed = True

    def __init__(self, lat_lngs, projection: MapProjection, color: str = kind_color(EntityKind.POLYGON)):
        super().__init__(lat_lngs, projection, color)

    def set_lat_lngs(self, lat_lngs):
        ring = [tuple(p) for p in lat_lngs]
        if len(ring) > 1 and ring[0] == ring[-1]:
            ring = ring[:-1]
        super().set_lat_lngs(ring)


class OverlayGroup:
    def __init__(self, scene: QGraphicsScene):
        self._scene = scene
        self._items = []

    def add(self, overlay):
        if overlay.scene() is not self._scene:
            self._scene.addItem(overlay)
        if overlay not in self._items:
            self._items.append(overlay)

    def remove(self, overlay):
        if overlay in self._items:
            self._items.remove(overlay)
        if overlay.scene() is self._scene:
            self._scene.removeItem(overlay)

    def clear(self):
        for overlay in self._items:
            if overlay.scene() is self._scene:
                self._scene.removeItem(overlay)
        self._items.clear()

    def items(self) -> list:
        return list(self._items)

    def __len__(self):
        return len(self._items)


class DrawTool(QObject):
    """
    Herramienta de dibujo para un solo tipo de capa. Mientras está
    habilitada recibe los clics del lienzo.
    """

    native_type = ""
    min_vertices = 1

    def __init__(self, canvas: "MapCanvas"):
        super().__init__(canvas)
        self._canvas = canvas
        self._vertices = []
        self._preview = None
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    def vertices(self) -> list[tuple[float, float]]:
        return list(self._vertices)

    def enable(self):
        if self._enabled:
            return
        self._enabled = True
        self._vertices = []
        self._canvas._arm(self)

    def disable(self):
        if not self._enabled:
            return
        self._enabled = False
        self._vertices = []
        self._drop_preview()
        self._canvas._disarm(self)

    def add_vertex(self, lat: float, lng: float):
        if not self._enabled:
            return
        self._vertices.append((lat, lng))
        # vertex_added se emite antes de redibujar el preview; un oyente que
        # complete la forma en la misma llamada deja la herramienta deshabilitada.
        self._canvas.vertex_added.emit(len(self._vertices))
        self._update_preview()

    def complete_shape(self):
        if not self._enabled or len(self._vertices) < self.min_vertices:
            return
        overlay = self._build_overlay(list(self._vertices))
        self.disable()
        self._canvas.shape_created.emit(self.native_type, overlay)

    def handle_click(self, scene_pos: QPointF):
        lat, lng = self._canvas.projection.to_lat_lng(scene_pos.x(), scene_pos.y())
        self.add_vertex(lat, lng)

    def handle_double_click(self, scene_pos: QPointF):
        self.complete_shape()

    def _build_overlay(self, vertices):
        raise NotImplementedError

    def _update_preview(self):
        if not self._enabled or len(self._vertices) < 2:
            return
        points = [self._canvas.projection.to_scene(lat, lng) for lat, lng in self._vertices]
        path = GeometryBuilder.path_from_points(points)
        if self._preview is None:
            self._preview = self._canvas.scene().addPath(path, GeometryBuilder.pen_for(DRAW_COLOR, 2, dash=[5, 5]))
            self._preview.setZValue(20)
        else:
            self._preview.setPath(path)

    def _drop_preview(self):
        if self._preview is not None:
            if self._preview.scene() is not None:
                self._preview.scene().removeItem(self._preview)
            self._preview = None


class MarkerTool(DrawTool):
    native_type = MARKER

    def handle_click(self, scene_pos: QPointF):
        super().handle_click(scene_pos)
        self.complete_shape()

    def _build_overlay(self, vertices):
        lat, lng = vertices[0]
        return MarkerOverlay(lat, lng, self._canvas.projection, DRAW_COLOR)


class PolylineTool(DrawTool):
    native_type = POLYLINE
    min_vertices = 2

    def _build_overlay(self, vertices):
        return PolylineOverlay(vertices, self._canvas.projection, DRAW_COLOR)


class PolygonTool(DrawTool):
    native_type = POLYGON
    min_vertices = 3

    def handle_click(self, scene_pos: QPointF):
        if self.vertex_count >= self.min_vertices:
            first = self._canvas.projection.to_scene(*self._vertices[0])
            if self._canvas.is_near(QPointF(*first), scene_pos, CLOSE_RING_TOLERANCE_PX):
                self.complete_shape()
                return
        super().handle_click(scene_pos)

    def _build_overlay(self, vertices):
        return PolygonOverlay(vertices, self._canvas.projection, DRAW_COLOR)


TOOL_CLASSES = {
    MARKER: MarkerTool,
    POLYLINE: PolylineTool,
    POLYGON: PolygonTool,
}


class MapCanvas(QGraphicsView):
    clicked = Signal(float, float)
    shape_created = Signal(str, object)
    vertex_added = Signal(int)
    entity_clicked = Signal(int)
    cursor_moved = Signal(float, float)

    def __init__(self, projection: MapProjection = None, parent=None):
        super().__init__(parent)
        self.projection = projection or MapProjection()
        self.setScene(QGraphicsScene(self))
        self.setRenderHint(QPainter.Antialiasing)
        self.setDragMode(QGraphicsView.ScrollHandDrag)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setMinimumSize(400, 300)
        self.setMouseTracking(True)

        half = WORLD_WIDTH_KM / 2
        self.scene().setSceneRect(QRectF(-half, -half, 2 * half, 2 * half))
        self._graticule = self._build_graticule()

        self._armed = []
        self._press_pos = None
        self._entity_group = self.create_overlay_group()
        self._entity_overlays = {}

    # --- Vista ---
    def set_view(self, lat: float, lng: float, zoom: float):
        pixels_per_km = 256 * (2 ** zoom) / WORLD_WIDTH_KM
        self.resetTransform()
        self.scale(pixels_per_km, pixels_per_km)
        self.centerOn(QPointF(*self.projection.to_scene(lat, lng)))

    def wheelEvent(self, event):
        factor = 1.25 if event.angleDelta().y() > 0 else 0.8
        self.scale(factor, factor)

    def is_near(self, a: QPointF, b: QPointF, tolerance_px: float) -> bool:
        pa, pb = self.mapFromScene(a), self.mapFromScene(b)
        return math.hypot(pa.x() - pb.x(), pa.y() - pb.y()) <= tolerance_px

    def set_move_cursor(self, active: bool):
        if active:
            self.viewport().setCursor(Qt.SizeAllCursor)
        else:
            self.viewport().unsetCursor()

    # --- Grupos de capas ---
    def create_overlay_group(self) -> OverlayGroup:
        return OverlayGroup(self.scene())

    def remove_overlay_group(self, group: OverlayGroup):
        group.clear()

    # --- Herramientas de dibujo ---
    def create_draw_tool(self, native_type: str) -> DrawTool:
        try:
            return TOOL_CLASSES[native_type](self)
        except KeyError:
            raise ValueError(f"Tipo de herramienta no soportado: '{native_type}'")

    def armed_tools(self) -> list:
        return list(self._armed)

    def _arm(self, tool):
        if tool not in self._armed:
            self._armed.append(tool)
        self.setDragMode(QGraphicsView.NoDrag)
        self.viewport().setCursor(Qt.CrossCursor)

    def _disarm(self, tool):
        if tool in self._armed:
            self._armed.remove(tool)
        if not self._armed:
            self.setDragMode(QGraphicsView.ScrollHandDrag)
            self.viewport().unsetCursor()

    # --- Eventos de ratón ---
    def mousePressEvent(self, event):
        self._press_pos = event.position()
        if self._armed and event.button() == Qt.LeftButton:
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        super().mouseMoveEvent(event)
        scene_pos = self.mapToScene(event.position().toPoint())
        try:
            lat, lng = self.projection.to_lat_lng(scene_pos.x(), scene_pos.y())
        except ProjectionError:
            return
        self.cursor_moved.emit(lat, lng)

    def mouseReleaseEvent(self, event):
        press, self._press_pos = self._press_pos, None
        is_click = (
            press is not None
            and event.button() == Qt.LeftButton
            and math.hypot(event.position().x() - press.x(), event.position().y() - press.y()) <= CLICK_TOLERANCE_PX
        )
        if self._armed and event.button() == Qt.LeftButton:
            if is_click:
                scene_pos = self.mapToScene(event.position().toPoint())
                for tool in list(self._armed):
                    tool.handle_click(scene_pos)
            event.accept()
            return

        on_overlay = self._overlay_at(event.position().toPoint()) is not None
        super().mouseReleaseEvent(event)
        if is_click and not on_overlay:
            scene_pos = self.mapToScene(event.position().toPoint())
            try:
                lat, lng = self.projection.to_lat_lng(scene_pos.x(), scene_pos.y())
            except ProjectionError as e:
                logger.warning(f"Clic fuera de la proyección: {e}")
                return
            self.clicked.emit(lat, lng)

    def mouseDoubleClickEvent(self, event):
        if self._armed:
            scene_pos = self.mapToScene(event.position().toPoint())
            for tool in list(self._armed):
                tool.handle_double_click(scene_pos)
            event.accept()
            return
        super().mouseDoubleClickEvent(event)

    def _overlay_at(self, view_pos):
        item = self.itemAt(view_pos)
        return item if isinstance(item, _OverlayMixin) else None

    # --- Entidades ---
    def render_entities(self, entities, hidden_ids=(), selected_id=None) -> dict:
        """Reconstruye las capas de las entidades; devuelve {id: capa}."""
        self._entity_group.clear()
        self._entity_overlays = {}
        hidden = set(hidden_ids)
        for entity in entities:
            if entity.id in hidden:
                continue
            overlay = self._overlay_for_entity(entity, entity.id == selected_id)
            if overlay is None:
                continue
            self._entity_group.add(overlay)
            self._entity_overlays[entity.id] = overlay
        return dict(self._entity_overlays)

    def overlay_for(self, entity_id):
        return self._entity_overlays.get(entity_id)

    def _overlay_for_entity(self, entity, selected: bool):
        coords = decode(entity.geometry, entity.kind)
        if not coords:
            return None
        try:
            if entity.kind == EntityKind.POINT:
                overlay = MarkerOverlay(coords[0][0], coords[0][1], self.projection)
            elif entity.kind == EntityKind.LINE:
                if len(coords) < 2:
                    return None
                overlay = PolylineOverlay(coords, self.projection)
            elif entity.kind == EntityKind.POLYGON:
                if len(coords) < 3:
                    return None
                overlay = PolygonOverlay(coords, self.projection)
            else:
                return None
        except ProjectionError as e:
            logger.warning(f"Entidad {entity.id} fuera de la proyección: {e}")
            return None

        overlay.entity_id = entity.id
        overlay.set_style(**GeometryBuilder.style_for(entity.kind, selected))
        overlay.setToolTip(f"{entity.name}\n{kind_label(entity.kind)}\nID: {entity.id}")
        overlay.events.clicked.connect(lambda eid=entity.id: self.entity_clicked.emit(eid))
        return overlay

    # --- Fondo ---
    def _build_graticule(self):
        xs = [self.projection.to_scene(0, lng)[0] for lng in range(-180, 181, GRATICULE_STEP)]
        ys = [self.projection.to_scene(lat, 0)[1] for lat in range(-80, 81, GRATICULE_STEP)]
        return xs, ys

    def drawBackground(self, painter, rect):
        painter.fillRect(rect, QColor("#f4f6f8"))
        pen = QPen(QColor("#d0d7de"), 0)
        painter.setPen(pen)
        xs, ys = self._graticule
        for x in xs:
            if rect.left() <= x <= rect.right():
                painter.drawLine(QPointF(x, rect.top()), QPointF(x, rect.bottom()))
        for y in ys:
            if rect.top() <= y <= rect.bottom():
                painter.drawLine(QPointF(rect.left(), y), QPointF(rect.right(), y))
