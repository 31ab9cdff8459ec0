# core/geometry_codec.py
"""
Codificación canónica de geometrías.

El texto canónico es "lng lat, lng lat, ..." (longitud primero). El mapa
trabaja en orden (lat, lng), así que cada cruce de frontera invierte el par.
"""
import math

from loguru import logger

from core.entity import EntityKind

PAIR_SEPARATOR = ", "
AXIS_SEPARATOR = " "


class GeometryParseError(ValueError):
    pass


def format_number(value: float) -> str:
    """Representación más corta que vuelve al mismo float; 29.0 -> "29"."""
    value = float(value)
    if value == 0:
        return "0"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def parse_pairs(text: str) -> list[tuple[float, float]]:
    """
    Devuelve los pares en orden canónico (lng, lat).
    Lanza GeometryParseError si algún par no es válido.
    """
    if text is None or not text.strip():
        raise GeometryParseError("Geometría vacía")

    pairs = []
    for piece in text.split(","):
        parts = piece.strip().split()
        if len(parts) != 2:
            raise GeometryParseError(f"Par de coordenadas inválido: '{piece.strip()}'")
        try:
            lng, lat = float(parts[0]), float(parts[1])
        except ValueError:
            raise GeometryParseError(f"Coordenada no numérica: '{piece.strip()}'")
        if not (math.isfinite(lng) and math.isfinite(lat)):
            raise GeometryParseError(f"Coordenada no finita: '{piece.strip()}'")
        pairs.append((lng, lat))
    return pairs


def decode(text: str, kind=None) -> list[tuple[float, float]]:
    """
    Texto canónico -> lista de (lat, lng) en el orden del mapa.
    Un error de formato se registra y devuelve lista vacía.
    """
    if text is None or not text.strip():
        return []
    try:
        pairs = parse_pairs(text)
    except GeometryParseError as e:
        logger.warning(f"No se pudo interpretar la geometría ({kind!r}): {e}")
        return []
    return [(lat, lng) for lng, lat in pairs]


def close_ring(coordinates) -> list[tuple[float, float]]:
    ring = [tuple(c) for c in coordinates]
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def encode(coordinates, kind=None) -> str:
    """
    Lista de (lat, lng) en orden del mapa -> texto canónico.
    Para polígonos se garantiza el anillo cerrado.
    """
    coords = [tuple(c) for c in coordinates]
    if kind is not None and EntityKind(kind) == EntityKind.POLYGON:
        coords = close_ring(coords)
    return PAIR_SEPARATOR.join(
        f"{format_number(lng)}{AXIS_SEPARATOR}{format_number(lat)}" for lat, lng in coords
    )


def format_point(lat: float, lng: float) -> str:
    return encode([(lat, lng)])
