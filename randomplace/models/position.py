from pydantic import BaseModel, ConfigDict, model_validator

from ..exceptions import CoordinateError


class ReferencePosition(BaseModel):
    """Posición actual del usuario, usada para filtrar por radio."""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @model_validator(mode="after")
    def validate_coordinate_ranges(self) -> "ReferencePosition":
        """Valida que las coordenadas estén en rangos WGS84."""
        if not (-90 <= self.latitude <= 90):
            raise CoordinateError(
                "Latitude out of range (-90, 90)",
                details={"latitude": self.latitude}
            )
        if not (-180 <= self.longitude <= 180):
            raise CoordinateError(
                "Longitude out of range (-180, 180)",
                details={"longitude": self.longitude}
            )
        return self
