"""Configuración de la aplicación cargada desde variables de entorno."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Valores por defecto; se sobrescriben con GEOEDITOR_* o un .env."""

    model_config = SettingsConfigDict(
        env_prefix="GEOEDITOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Servidor remoto
    api_base_url: str = "http://localhost:5000/api"
    request_timeout: float = Field(default=10.0, gt=0)

    # Filtros
    search_debounce_ms: int = Field(default=300, ge=0)

    # Vista inicial del mapa (Turquía)
    map_center_lat: float = Field(default=39.0, ge=-90, le=90)
    map_center_lng: float = Field(default=35.0, ge=-180, le=180)
    map_zoom: float = Field(default=6, ge=0, le=20)

    # Decimales de la posición del cursor (no afecta lo que se guarda)
    coordinate_precision: int = Field(default=6, ge=0, le=12)


@lru_cache
def get_settings() -> Settings:
    return Settings()
