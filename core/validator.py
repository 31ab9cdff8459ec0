# core/validator.py
from typing import Optional

from core.entity import EntityKind
from core.geometry_codec import GeometryParseError, parse_pairs

MIN_LINE_PAIRS = 2
# 3 a 10 vértices más el par de cierre
MIN_POLYGON_PAIRS = 4
MAX_POLYGON_PAIRS = 11

NAME_FIELD = "name"
GEOMETRY_FIELD = "geometry"


class ValidationError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def validate_name(name: str) -> Optional[str]:
    if name is None or not name.strip():
        return "El nombre es obligatorio"
    return None


def validate_geometry(text: str, kind) -> Optional[str]:
    """
    Devuelve None si `text` es válido para `kind`, o un mensaje legible.
    Nunca lanza excepciones.
    """
    if text is None or not text.strip():
        return "La coordenada es obligatoria"

    try:
        kind = EntityKind(kind)
    except ValueError:
        return f"Tipo de geometría desconocido: {kind}"

    count = len(text.split(","))

    if kind == EntityKind.POINT and count != 1:
        return 'Un punto requiere un único par de coordenadas (ej: "28.9784 41.0082")'
    if kind == EntityKind.LINE and count < MIN_LINE_PAIRS:
        return "Una línea requiere al menos 2 pares de coordenadas"
    if kind == EntityKind.POLYGON and not (MIN_POLYGON_PAIRS <= count <= MAX_POLYGON_PAIRS):
        return "El polígono debe tener entre 3 y 10 vértices (4 a 11 coordenadas)."

    try:
        pairs = parse_pairs(text)
    except GeometryParseError:
        return "Formato de coordenada inválido"

    if kind == EntityKind.POLYGON and pairs[0] != pairs[-1]:
        return "El polígono debe estar cerrado (la primera y la última coordenada deben coincidir)."
    return None


def validate_form(name: str, geometry: str, kind) -> dict[str, str]:
    errors = {}
    name_error = validate_name(name)
    if name_error:
        errors[NAME_FIELD] = name_error
    geometry_error = validate_geometry(geometry, kind)
    if geometry_error:
        errors[GEOMETRY_FIELD] = geometry_error
    return errors


def raise_for_errors(errors: dict[str, str]):
    for field, message in errors.items():
        raise ValidationError(field, message)
