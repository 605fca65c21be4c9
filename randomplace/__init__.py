"""
RandomPlace - Lugar aleatorio de una ciudad
===========================================

Paquete Python para elegir al azar un lugar con nombre de una ciudad usando
datos de OpenStreetMap (API Overpass), con filtro opcional por distancia a la
posición del usuario.

API Dual (Async/Sync):
    # API Async
    import asyncio
    from randomplace import LocationPicker

    async def main():
        async with LocationPicker() as picker:
            result = await picker.pick_random_location("Paris")
            print(result.to_text())

    asyncio.run(main())

    # API Sync (para scripts simples)
    from randomplace import LocationPicker

    picker = LocationPicker()
    result = picker.pick_random_location_sync("Paris")

Modelos de Datos (Pydantic):
    GeoEntity (lugar de Overpass), ReferencePosition (posición del usuario),
    SelectionResult (resultado formateado) y CityResponse (lista de una ciudad).
"""

from .picker import LocationPicker
from .overpass import OverpassClient
from .position import GeolocationRefresh, PositionProvider, StaticPositionProvider
from .session import PickerSession, PickerState, SessionView
from .utils.cache import CityCache
from .models import CityResponse, GeoEntity, ReferencePosition, SelectionResult
from .exceptions import (
    LocationPickerError,
    ConfigurationError,
    EmptyInputError,
    NoResultsError,
    CoordinateError,
    PositionUnavailableError,
    FetchError,
    FetchConnectionError,
    FetchTimeoutError,
    FetchHTTPError,
)

__version__ = "1.0.0"
__all__ = [
    "LocationPicker",
    "OverpassClient",
    "CityCache",
    "PickerSession",
    "PickerState",
    "SessionView",
    "GeolocationRefresh",
    "PositionProvider",
    "StaticPositionProvider",
    "GeoEntity",
    "ReferencePosition",
    "SelectionResult",
    "CityResponse",
    "LocationPickerError",
    "ConfigurationError",
    "EmptyInputError",
    "NoResultsError",
    "CoordinateError",
    "PositionUnavailableError",
    "FetchError",
    "FetchConnectionError",
    "FetchTimeoutError",
    "FetchHTTPError",
]
