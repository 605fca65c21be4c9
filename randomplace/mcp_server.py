"""
RandomPlace MCP Server
======================

Servidor MCP (Model Context Protocol) para RandomPlace.
Expone la selección de lugares aleatorios a través del protocolo MCP.

Uso:
    # Ejecutar con STDIO (por defecto)
    python -m randomplace.mcp_server

    # O usando el comando instalado
    randomplace-mcp

    # Ejecutar con HTTP
    python -m randomplace.mcp_server --transport http --port 8000
"""

import argparse
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Literal, Optional

from fastmcp import FastMCP
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import (
    ConfigurationError,
    CoordinateError,
    EmptyInputError,
    FetchConnectionError,
    FetchError,
    FetchHTTPError,
    FetchTimeoutError,
    LocationPickerError,
    NoResultsError,
)
from .geo import haversine_km
from .models import ReferencePosition
from .overpass import DEFAULT_OVERPASS_URL
from .picker import LocationPicker
from .utils.logging import setup_logging

# ============================================================================
# Configuración de Logging
# ============================================================================

log_level = os.getenv("FASTMCP_LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("randomplace.mcp")

# Instancia compartida de LocationPicker (la caché vive lo que vive el servidor)
_picker_instance: LocationPicker | None = None


def get_picker() -> LocationPicker:
    """
    Obtiene la instancia compartida de LocationPicker (lazy loading).

    Returns:
        LocationPicker: Selector configurado
    """
    global _picker_instance

    if _picker_instance is None:
        overpass_url = os.getenv("RANDOMPLACE_OVERPASS_URL", DEFAULT_OVERPASS_URL)
        timeout = int(os.getenv("RANDOMPLACE_TIMEOUT", "180"))

        logger.info(
            "Initializing LocationPicker (Overpass URL: %s, timeout: %s)",
            overpass_url,
            timeout
        )

        _picker_instance = LocationPicker(
            logger=logger,
            overpass_url=overpass_url,
            timeout=timeout,
        )

    return _picker_instance


# ============================================================================
# Modelos de Validación de Parámetros
# ============================================================================

class RandomLocationParams(BaseModel):
    """Parámetros validados para random_location."""

    city: str = Field(..., max_length=200, description="Nombre de la ciudad")
    radius_km: float = Field(0, le=20000, description="Radio en km (<= 0 = sin filtro)")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="Latitud de referencia")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="Longitud de referencia")
    output: Literal["text", "html"] = Field("text", description="Formato del bloque de resultado")

    @model_validator(mode="after")
    def validate_position_pair(self) -> "RandomLocationParams":
        """Valida que latitud y longitud se indiquen juntas."""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self

    def reference_position(self) -> ReferencePosition | None:
        if self.latitude is None or self.longitude is None:
            return None
        return ReferencePosition(latitude=self.latitude, longitude=self.longitude)


class ListLocationsParams(BaseModel):
    """Parámetros validados para list_locations."""

    city: str = Field(..., min_length=1, max_length=200, description="Nombre de la ciudad")
    max_results: int = Field(20, ge=1, le=1000, description="Número máximo de lugares")

    @field_validator("city")
    @classmethod
    def validate_city(cls, v: str) -> str:
        """Valida que la ciudad no sea solo espacios."""
        if not v.strip():
            raise ValueError("City cannot be empty")
        return v.strip()


class DistanceParams(BaseModel):
    """Parámetros validados para distance_between."""

    lat1: float = Field(..., ge=-90, le=90)
    lon1: float = Field(..., ge=-180, le=180)
    lat2: float = Field(..., ge=-90, le=90)
    lon2: float = Field(..., ge=-180, le=180)


# ============================================================================
# Utilidades de Manejo de Excepciones
# ============================================================================

def convert_picker_error(e: Exception) -> Exception:
    """Convierte excepciones de RandomPlace a excepciones estándar de Python.

    El mensaje resultante es el texto que vería el usuario en el formulario.

    Args:
        e: Excepción original de RandomPlace

    Returns:
        Exception: Excepción estándar de Python apropiada
    """
    if isinstance(e, (EmptyInputError, CoordinateError)):
        return ValueError(e.user_message)

    elif isinstance(e, NoResultsError):
        return LookupError(e.user_message)

    elif isinstance(e, ConfigurationError):
        return RuntimeError(f"Service configuration error: {e.message}")

    elif isinstance(e, FetchTimeoutError):
        return TimeoutError(e.user_message)

    elif isinstance(e, FetchConnectionError):
        return ConnectionError(e.user_message)

    elif isinstance(e, FetchHTTPError):
        if e.status_code and 400 <= e.status_code < 500 and e.status_code != 429:
            return ValueError(e.user_message)
        return RuntimeError(e.user_message)

    elif isinstance(e, FetchError):
        return RuntimeError(e.user_message)

    elif isinstance(e, LocationPickerError):
        return RuntimeError(e.user_message)

    return e


# ============================================================================
# Configuración del Servidor MCP con Lifespan
# ============================================================================

@asynccontextmanager
async def lifespan(app):
    """
    Ciclo de vida del servidor MCP: cierra el selector compartido al apagar.
    """
    logger.info("Starting RandomPlace MCP server...")

    yield

    global _picker_instance

    if _picker_instance:
        logger.info("Shutting down RandomPlace MCP server...")
        try:
            await _picker_instance.close()
            logger.info("LocationPicker closed")
        except Exception as e:
            logger.error(f"Error closing LocationPicker: {e}", exc_info=True)
        _picker_instance = None


mcp = FastMCP(
    name="RandomPlace",
    instructions="""
    Elige al azar un lugar con nombre (tienda, monumento, parada, parque...)
    de una ciudad usando datos de OpenStreetMap (API Overpass).

    Herramientas:
    - random_location: un lugar aleatorio, opcionalmente a menos de radius_km
      de una posición (latitude, longitude)
    - list_locations: lugares de una ciudad
    - distance_between: distancia de círculo máximo entre dos puntos
    - clear_cache: vacía la caché de ciudades

    El nombre de la ciudad debe coincidir exactamente con el nombre del área
    en OpenStreetMap ("Paris", "København"...).
    """.strip(),
    lifespan=lifespan,
)


# ============================================================================
# Herramientas MCP
# ============================================================================

@mcp.tool()
async def random_location(
    city: str,
    radius_km: float = 0,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    output: str = "text",
) -> dict:
    """
    Elige un lugar aleatorio de una ciudad.

    Args:
        city: Nombre de la ciudad (coincidencia exacta con OpenStreetMap)
        radius_km: Radio en km alrededor de (latitude, longitude); <= 0 desactiva el filtro
        latitude: Latitud de la posición de referencia (WGS84)
        longitude: Longitud de la posición de referencia (WGS84)
        output: "text" o "html" para el bloque de resultado

    Returns:
        Diccionario con name, latitude, longitude, type, distance_km, map_url,
        osm_type, osm_id, tags y el bloque formateado (text o html).

    Examples:
        >>> await random_location("Paris")
        >>> await random_location("Paris", radius_km=1.5, latitude=48.8584, longitude=2.2945)
    """
    try:
        params = RandomLocationParams(
            city=city, radius_km=radius_km, latitude=latitude, longitude=longitude, output=output
        )
        reference = params.reference_position()
    except (ValidationError, CoordinateError) as e:
        logger.warning(f"Invalid parameters in random_location: {e}")
        raise ValueError(f"Invalid parameters: {e}") from e

    picker = get_picker()

    try:
        result = await picker.pick_random_location(params.city, params.radius_km, reference)
        logger.info(f"random_location: '{params.city}' (radius={params.radius_km}) -> {result.name}")

    except LocationPickerError as e:
        logger.info(f"random_location: '{params.city}' -> {e.user_message}")
        raise convert_picker_error(e) from e

    except Exception as e:
        logger.error(f"Unexpected error in random_location: {e}", exc_info=True)
        raise

    payload = result.model_dump(exclude={"entity"})
    payload.update(
        osm_type=result.entity.osm_type,
        osm_id=result.entity.osm_id,
        tags=result.entity.tags,
    )
    payload[params.output] = result.to_html() if params.output == "html" else result.to_text()
    return payload


@mcp.tool()
async def list_locations(city: str, max_results: int = 20) -> dict:
    """
    Lista lugares con nombre de una ciudad (usa la caché de ciudades).

    Args:
        city: Nombre de la ciudad
        max_results: Número máximo de lugares devueltos (default: 20)

    Returns:
        Diccionario con city, count (total), from_cache y entities
    """
    try:
        params = ListLocationsParams(city=city, max_results=max_results)
    except ValidationError as e:
        logger.warning(f"Invalid parameters in list_locations: {e}")
        raise ValueError(f"Invalid parameters: {e}") from e

    picker = get_picker()

    try:
        response = await picker.find_entities_response(params.city)
    except LocationPickerError as e:
        logger.error(f"RandomPlace error in list_locations: {e}", exc_info=True)
        raise convert_picker_error(e) from e

    logger.info(f"list_locations: '{params.city}' -> {response.count} entities")
    return {
        "city": response.city,
        "count": response.count,
        "from_cache": response.from_cache,
        "entities": [e.model_dump() for e in response.entities[:params.max_results]],
    }


@mcp.tool()
def distance_between(lat1: float, lon1: float, lat2: float, lon2: float) -> dict:
    """
    Distancia de círculo máximo (haversine, radio 6371 km) entre dos puntos WGS84.

    Returns:
        {"distance_km": distancia redondeada a 3 decimales}
    """
    try:
        params = DistanceParams(lat1=lat1, lon1=lon1, lat2=lat2, lon2=lon2)
    except ValidationError as e:
        raise ValueError(f"Invalid parameters: {e}") from e

    distance = haversine_km(params.lat1, params.lon1, params.lat2, params.lon2)
    return {"distance_km": round(distance, 3)}


@mcp.tool()
def clear_cache() -> dict:
    """
    Vacía la caché de ciudades del servidor.

    Returns:
        {"cleared": número de ciudades eliminadas}
    """
    cleared = get_picker().clear_cache()
    logger.info("clear_cache: %d cities removed", cleared)
    return {"cleared": cleared}


# ============================================================================
# Función Principal (CLI)
# ============================================================================

def main():
    """
    Función principal para ejecutar el servidor MCP.
    """
    parser = argparse.ArgumentParser(
        description="RandomPlace MCP server: random named places in a city"
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport type (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for HTTP transport (default: 8000)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (overrides FASTMCP_LOG_LEVEL)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit library logs as JSON lines",
    )

    args = parser.parse_args()

    if args.log_level:
        logging.getLogger().setLevel(getattr(logging, args.log_level))
        logger.setLevel(getattr(logging, args.log_level))

    if args.json_logs:
        level = getattr(logging, args.log_level or log_level)
        json_logger = setup_logging(level=level, json_format=True)
        json_logger.propagate = False

    run_kwargs = {
        "transport": args.transport,
    }

    if args.transport == "http":
        run_kwargs["host"] = args.host
        run_kwargs["port"] = args.port
        logger.info("Starting HTTP server on %s:%s", args.host, args.port)
    else:
        logger.info("Starting server with STDIO transport")

    if args.log_level:
        run_kwargs["log_level"] = args.log_level

    try:
        mcp.run(**run_kwargs)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error("Error running server: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
