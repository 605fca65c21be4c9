"""
Proveedores de posición y regla de refresco de la geolocalización.
"""

import logging
from typing import Protocol, runtime_checkable

from .exceptions import PositionUnavailableError
from .models import ReferencePosition


@runtime_checkable
class PositionProvider(Protocol):
    """Fuente de la posición actual del usuario."""

    async def current_position(self, high_accuracy: bool = True) -> ReferencePosition:
        """Retorna la posición actual o lanza PositionUnavailableError."""
        ...


class StaticPositionProvider:
    """Proveedor con una posición fija (o ninguna).

    Útil cuando la posición la aporta el cliente, p.ej. desde el servidor MCP.
    """

    def __init__(self, position: ReferencePosition | None = None):
        self.position = position
        self.requests = 0

    async def current_position(self, high_accuracy: bool = True) -> ReferencePosition:
        self.requests += 1
        if self.position is None:
            raise PositionUnavailableError("Current position is not available")
        return self.position


class GeolocationRefresh:
    """Mantiene la posición de referencia según el radio pedido.

    - Radio <= 0: la posición se borra sin consultar al proveedor.
    - Radio > 0 al pasar desde <= 0, al cambiar de valor o sin posición
      conocida: se pide la posición con alta precisión.
    - Si el proveedor falla, se conserva el valor anterior sin propagar el error.
    """

    def __init__(self, provider: PositionProvider | None = None, logger=None):
        self.provider = provider
        self.radius = 0.0
        self.position: ReferencePosition | None = None
        self.log = logger or logging.getLogger("randomplace.position")

    def _needs_request(self, radius: float) -> bool:
        return self.radius <= 0 or radius != self.radius or self.position is None

    async def update(self, radius: float) -> ReferencePosition | None:
        """Aplica un nuevo radio y retorna la posición de referencia resultante.

        Args:
            radius: Radio en kilómetros

        Returns:
            ReferencePosition o None si no hay posición
        """
        if radius <= 0:
            self.radius = radius
            if self.position is not None:
                self.log.debug("Radius %s <= 0: clearing reference position", radius)
            self.position = None
            return None

        needs_request = self._needs_request(radius)
        self.radius = radius
        if not needs_request:
            return self.position

        if self.provider is None:
            self.log.debug("No position provider configured")
            return self.position

        try:
            self.position = await self.provider.current_position(high_accuracy=True)
            self.log.info(
                "Reference position updated: %.6f, %.6f",
                self.position.latitude, self.position.longitude
            )
        except PositionUnavailableError as e:
            self.log.info("Position unavailable: %s", e.message)
        except Exception as e:
            self.log.warning("Position provider failed: %s", e, exc_info=True)

        return self.position
