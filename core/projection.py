# core/projection.py
import math

from pyproj import Transformer
from pyproj.exceptions import ProjError

# Límite de latitud de Web Mercator
MAX_LATITUDE = 85.05112878
# metros -> unidades de escena (km)
SCENE_SCALE = 1000.0


class ProjectionError(ValueError):
    pass


class MapProjection:
    """
    Convierte (lat, lng) WGS84 a coordenadas de escena (Web Mercator en km,
    eje Y hacia abajo) y viceversa.
    """

    def __init__(self, crs_from: str = "EPSG:4326", crs_to: str = "EPSG:3857"):
        try:
            self._forward = Transformer.from_crs(crs_from, crs_to, always_xy=True)
            self._inverse = Transformer.from_crs(crs_to, crs_from, always_xy=True)
        except ProjError as e:
            raise ProjectionError(f"No se pudo crear la proyección {crs_from} -> {crs_to}: {e}")

    def to_scene(self, lat: float, lng: float) -> tuple[float, float]:
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
        try:
            x, y = self._forward.transform(lng, lat, errcheck=True)
        except ProjError as e:
            raise ProjectionError(f"Error de transformación para ({lat}, {lng}): {e}")
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ProjectionError(f"Resultado no finito para ({lat}, {lng})")
        return x / SCENE_SCALE, -y / SCENE_SCALE

    def to_lat_lng(self, x: float, y: float) -> tuple[float, float]:
        try:
            lng, lat = self._inverse.transform(x * SCENE_SCALE, -y * SCENE_SCALE, errcheck=True)
        except ProjError as e:
            raise ProjectionError(f"Error de transformación inversa para ({x}, {y}): {e}")
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise ProjectionError(f"Resultado no finito para ({x}, {y})")
        return lat, lng
