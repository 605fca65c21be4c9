"""
Utilidades geométricas: distancia de círculo máximo y enlaces a mapas.
"""

import math

EARTH_RADIUS_KM = 6371

MAP_URL_TEMPLATE = "https://yandex.ru/maps/?pt={lon},{lat}&z=12&l=map"
MAP_LINK_LABEL = "Open in Yandex Maps"


def haversine_km(lat1, lon1, lat2, lon2):
    """Distancia de círculo máximo entre dos puntos WGS84.

    Args:
        lat1: Latitud del primer punto (grados)
        lon1: Longitud del primer punto (grados)
        lat2: Latitud del segundo punto (grados)
        lon2: Longitud del segundo punto (grados)

    Returns:
        float: Distancia en kilómetros (radio terrestre 6371 km)
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def map_url(lat, lon):
    """Construye el enlace al mapa centrado en el punto (lon,lat)."""
    return MAP_URL_TEMPLATE.format(lon=lon, lat=lat)
