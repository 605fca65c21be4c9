from typing import Optional
from pydantic import BaseModel
from .entity import GeoEntity

class CityResponse(BaseModel):
    """Modelo para la lista completa de lugares de una ciudad."""
    city: str
    entities: list[GeoEntity]
    count: int
    from_cache: bool = False
    time_ms: Optional[float] = None

    @classmethod
    def from_elements(cls, city: str, elements: list[dict]) -> "CityResponse":
        entities = [GeoEntity.from_overpass_element(e) for e in elements]
        return cls(city=city, entities=entities, count=len(entities))

    def __iter__(self):
        """Permite iterar sobre los lugares directamente: for e in response: ..."""
        return iter(self.entities)
