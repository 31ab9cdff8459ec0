# core/entity.py
from dataclasses import dataclass, replace
from enum import IntEnum


class EntityKind(IntEnum):
    """Tipo de geometría de una entidad; el valor coincide con `coordinateType` del API."""
    POINT = 1
    LINE = 2
    POLYGON = 3


KIND_LABELS = {
    EntityKind.POINT: "Punto",
    EntityKind.LINE: "Línea",
    EntityKind.POLYGON: "Área",
}

KIND_COLORS = {
    EntityKind.POINT: "#ef4444",
    EntityKind.LINE: "#3b82f6",
    EntityKind.POLYGON: "#10b981",
}

UNKNOWN_LABEL = "Desconocido"
UNKNOWN_COLOR = "#6b7280"


def kind_label(kind) -> str:
    try:
        return KIND_LABELS[EntityKind(kind)]
    except ValueError:
        return UNKNOWN_LABEL


def kind_color(kind) -> str:
    try:
        return KIND_COLORS[EntityKind(kind)]
    except ValueError:
        return UNKNOWN_COLOR


@dataclass(frozen=True)
class Entity:
    """
    Registro geográfico persistido en el servidor.
    `geometry` es el texto canónico "lng lat, lng lat, ...".
    """
    id: int
    name: str
    geometry: str
    kind: EntityKind

    def with_geometry(self, geometry: str) -> "Entity":
        return replace(self, geometry=geometry)
