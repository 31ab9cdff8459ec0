# core/geometry.py
from PySide6.QtGui import QPainterPath, QPen, QColor, QBrush
from PySide6.QtCore import QPointF, Qt

from core.entity import EntityKind, kind_color

# (peso normal, peso seleccionado)
LINE_WEIGHTS = (3, 5)
POLYGON_WEIGHTS = (2, 3)
# (relleno normal, relleno seleccionado)
POLYGON_FILL = (0.2, 0.3)
UNSELECTED_OPACITY = 0.7


class GeometryBuilder:
    """
    Construye objetos de dibujo (QPainterPath, QPen, QBrush) a partir
    de puntos ya proyectados a la escena.
    """

    @staticmethod
    def path_from_points(points: list[tuple[float, float]], closed: bool = False):
        """
        Devuelve un QPainterPath que recorre `points`, o None si no hay
        puntos suficientes (2 para líneas, 3 para anillos).
        """
        minimum = 3 if closed else 2
        if not points or len(points) < minimum:
            return None

        pts = list(points)
        if closed and tuple(pts[0]) != tuple(pts[-1]):
            pts.append(pts[0])

        path = QPainterPath(QPointF(pts[0][0], pts[0][1]))
        for x, y in pts[1:]:
            path.lineTo(QPointF(x, y))
        return path

    @staticmethod
    def style_for(kind, selected: bool = False) -> dict:
        """Estilo base de la capa de una entidad: opacity, fill_opacity, weight."""
        kind = EntityKind(kind)
        opacity = 1.0 if selected else UNSELECTED_OPACITY
        if kind == EntityKind.LINE:
            return {"opacity": opacity, "fill_opacity": 0.0, "weight": LINE_WEIGHTS[selected]}
        if kind == EntityKind.POLYGON:
            return {"opacity": opacity, "fill_opacity": POLYGON_FILL[selected], "weight": POLYGON_WEIGHTS[selected]}
        return {"opacity": 1.0, "fill_opacity": 1.0, "weight": 1}

    @staticmethod
    def pen_for(color: str, weight: float, dash=None):
        pen = QPen(QColor(color), weight)
        pen.setCosmetic(True)
        if dash:
            pen.setStyle(Qt.CustomDashLine)
            pen.setDashPattern([float(d) / max(weight, 1) for d in dash])
        else:
            pen.setStyle(Qt.SolidLine)
        return pen

    @staticmethod
    def brush_for(color: str, fill_opacity: float):
        if fill_opacity <= 0:
            return QBrush(Qt.NoBrush)
        fill = QColor(color)
        fill.setAlphaF(max(0.0, min(1.0, fill_opacity)))
        return QBrush(fill)

    @staticmethod
    def entity_color(kind) -> str:
        return kind_color(kind)
