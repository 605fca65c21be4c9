"""
Modelos de datos para RandomPlace.
"""

from .entity import GeoEntity, TYPE_TAG_PRIORITY, resolve_type
from .position import ReferencePosition
from .result import SelectionResult
from .response import CityResponse

__all__ = [
    "GeoEntity",
    "TYPE_TAG_PRIORITY",
    "resolve_type",
    "ReferencePosition",
    "SelectionResult",
    "CityResponse",
]
