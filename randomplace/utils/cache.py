"""
Caché en memoria de lugares por ciudad para RandomPlace.
"""

from typing import Iterator

from ..models import GeoEntity


class CityCache:
    """Caché de lugares indexada por nombre de ciudad normalizado.

    Las entradas se añaden de forma perezosa y nunca caducan ni se expulsan
    durante la vida del objeto; solo clear() las elimina. Para cada clave
    se conserva la primera lista almacenada.
    """

    def __init__(self):
        self._cache: dict[str, list[GeoEntity]] = {}

    @staticmethod
    def normalize_key(city: str) -> str:
        """Clave de caché: nombre recortado y en minúsculas."""
        return city.strip().lower()

    def get(self, city: str) -> list[GeoEntity] | None:
        """Obtiene la lista de lugares de una ciudad, o None si no está en caché.

        Args:
            city: Nombre de la ciudad (se normaliza internamente).
        """
        return self._cache.get(self.normalize_key(city))

    def set(self, city: str, entities: list[GeoEntity]) -> list[GeoEntity]:
        """Guarda la lista de lugares de una ciudad si aún no existe.

        Args:
            city: Nombre de la ciudad (se normaliza internamente).
            entities: Lista de lugares, posiblemente vacía.

        Returns:
            La lista almacenada para la clave.
        """
        return self._cache.setdefault(self.normalize_key(city), list(entities))

    def clear(self) -> int:
        """Limpia toda la caché y retorna el número de entradas eliminadas."""
        count = len(self._cache)
        self._cache.clear()
        return count

    def keys(self) -> Iterator[str]:
        return iter(self._cache)

    def __contains__(self, city: object) -> bool:
        return isinstance(city, str) and self.normalize_key(city) in self._cache

    def __len__(self) -> int:
        """Retorna el número de ciudades en la caché."""
        return len(self._cache)
