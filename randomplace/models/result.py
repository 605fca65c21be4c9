import html

from pydantic import BaseModel, Field

from ..geo import MAP_LINK_LABEL
from .entity import GeoEntity

NOT_AVAILABLE = "Not available"


class SelectionResult(BaseModel):
    """Lugar elegido al azar, listo para mostrar."""

    entity: GeoEntity
    name: str = Field(..., description="Nombre para mostrar")
    latitude: float | None = Field(None, description="Latitud mostrada")
    longitude: float | None = Field(None, description="Longitud mostrada")
    type: str | None = Field(None, description="Tipo de lugar (sin guiones bajos)")
    distance_km: float | None = Field(None, description="Distancia a la referencia, 2 decimales")
    map_url: str | None = Field(None, description="Enlace al mapa")

    @property
    def coordinates_text(self) -> str:
        if self.latitude is None or self.longitude is None:
            return NOT_AVAILABLE
        return f"{self.latitude:.6f}, {self.longitude:.6f}"

    def lines(self) -> list[str]:
        """Líneas del bloque de resultado, sin el enlace al mapa."""
        lines = [f"Name: {self.name}", f"Coordinates: {self.coordinates_text}"]
        if self.type:
            lines.append(f"Type: {self.type}")
        if self.distance_km is not None:
            lines.append(f"Distance to: {self.distance_km:.2f} km")
        return lines

    def to_text(self) -> str:
        """Bloque de texto plano, con el enlace como última línea."""
        lines = self.lines()
        if self.map_url:
            lines.append(f"{MAP_LINK_LABEL}: {self.map_url}")
        return "\n".join(lines)

    def to_html(self) -> str:
        """Bloque HTML con el enlace abriéndose en una pestaña nueva."""
        parts = [html.escape(line) for line in self.lines()]
        if self.map_url:
            parts.append(
                f'<a href="{html.escape(self.map_url)}" target="_blank">{MAP_LINK_LABEL}</a>'
            )
        return "<br/>".join(parts)

    def __str__(self) -> str:
        return self.to_text()
