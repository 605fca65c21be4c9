from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Orden de prioridad de las etiquetas OSM para determinar el tipo de un lugar
TYPE_TAG_PRIORITY: tuple[str, ...] = (
    "type",
    "shop",
    "amenity",
    "highway",
    "craft",
    "office",
    "public_transport",
    "leisure",
    "attraction",
    "tourism",
    "historic",
    "place",
    "club",
    "disused:amenity",
    "building",
)

UNNAMED = "Unnamed"


def resolve_type(tags: dict[str, str]) -> str | None:
    """Devuelve el valor de la primera etiqueta de TYPE_TAG_PRIORITY presente.

    Las etiquetas con valor vacío se consideran ausentes.
    """
    for key in TYPE_TAG_PRIORITY:
        value = tags.get(key)
        if value:
            return value
    return None


class GeoEntity(BaseModel):
    """Lugar con nombre devuelto por Overpass (nodo o área con centro)."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["point", "area-with-center"] = Field(..., description="Punto o área con centro")
    osm_type: str = Field("node", description="Tipo de elemento OSM (node, way, relation)")
    osm_id: int | None = Field(None, description="Identificador OSM")
    latitude: float | None = Field(None, description="Latitud WGS84")
    longitude: float | None = Field(None, description="Longitud WGS84")
    name: str = Field(UNNAMED, description="Etiqueta name o 'Unnamed'")
    tags: dict[str, str] = Field(default_factory=dict, description="Etiquetas OSM")

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> dict[str, str]:
        if v is None:
            return {}
        return {str(k): str(val) for k, val in v.items()}

    @classmethod
    def from_overpass_element(cls, element: dict[str, Any]) -> "GeoEntity":
        """Crea una instancia a partir de un elemento de la respuesta Overpass."""
        tags: dict[str, Any] = element.get("tags") or {}
        osm_type = element.get("type", "")

        if osm_type == "node":
            kind = "point"
            lat, lon = element.get("lat"), element.get("lon")
        else:
            kind = "area-with-center"
            center: dict[str, Any] = element.get("center") or {}
            lat, lon = center.get("lat"), center.get("lon")

        return cls(
            kind=kind,
            osm_type=osm_type,
            osm_id=element.get("id"),
            latitude=lat,
            longitude=lon,
            name=tags.get("name") or UNNAMED,
            tags=tags,
        )

    @property
    def coordinate(self) -> tuple[float, float] | None:
        """Coordenada representativa (lat, lon) o None si falta algún valor."""
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude

    @property
    def display_type(self) -> str | None:
        """Tipo de lugar para mostrar, con los guiones bajos como espacios."""
        value = resolve_type(self.tags)
        if value is None:
            return None
        return value.replace("_", " ")
