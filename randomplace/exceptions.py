"""
Jerarquía de excepciones personalizada para RandomPlace.

Todas las excepciones de RandomPlace heredan de LocationPickerError, permitiendo
capturar todos los errores de la librería con un solo except. Cada excepción
expone ``user_message``: el texto que se muestra en el área de resultados.
"""

from typing import Optional, Dict, Any

__all__ = [
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


class LocationPickerError(Exception):
    """Clase base para todas las excepciones de RandomPlace.

    Attributes:
        message: Mensaje de error principal
        details: Diccionario opcional con contexto adicional del error
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Inicializa la excepción con mensaje y detalles opcionales.

        Args:
            message: Mensaje de error descriptivo
            details: Diccionario con información adicional del contexto
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def user_message(self) -> str:
        """Texto visible para el usuario."""
        return self.message

    def __str__(self) -> str:
        """Formatea el mensaje de error con detalles si están disponibles."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        """Representación para debugging."""
        class_name = self.__class__.__name__
        if self.details:
            return f"{class_name}(message={self.message!r}, details={self.details!r})"
        return f"{class_name}(message={self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Convierte la excepción a diccionario para serialización JSON.

        Returns:
            dict: Diccionario con type, message, user_message y details
        """
        result = {
            "type": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details.copy(),
        }

        # Añadir atributos específicos de subclases
        if getattr(self, "url", None):
            result["url"] = self.url
        if getattr(self, "status_code", None) is not None:
            result["status_code"] = self.status_code
        if getattr(self, "response_text", None):
            result["response_text"] = self.response_text[:200]

        return result


class ConfigurationError(LocationPickerError):
    """Error de configuración del cliente o del selector.

    Se lanza cuando hay problemas con la configuración inicial:
    - URL del servidor Overpass vacía
    - Timeouts o reintentos negativos

    Example:
        raise ConfigurationError(
            "Overpass URL cannot be empty",
            details={"url": url}
        )
    """
    pass


class EmptyInputError(LocationPickerError):
    """El nombre de ciudad está vacío o solo contiene espacios."""

    def __init__(self, message: str = "Please enter a city name.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class NoResultsError(LocationPickerError):
    """No hay lugares para la ciudad o ninguno dentro del radio pedido.

    Attributes:
        city: Nombre de la ciudad recortado, con las mayúsculas originales
    """

    def __init__(self, city: str, details: Optional[Dict[str, Any]] = None):
        self.city = city
        super().__init__(f'No locations found in city "{city}".', details)


class CoordinateError(LocationPickerError):
    """Error relacionado con coordenadas geográficas.

    Se lanza cuando una posición de referencia está fuera de rango.

    Example:
        raise CoordinateError(
            "Latitude out of range (-90, 90)",
            details={"latitude": latitude}
        )
    """
    pass


class PositionUnavailableError(LocationPickerError):
    """El proveedor de posición no ha podido obtener la ubicación actual."""
    pass


class FetchError(LocationPickerError):
    """Clase base para errores al consultar la fuente de datos geográficos.

    Se lanza cuando hay problemas comunicándose con Overpass:
    - Errores de red
    - Errores HTTP
    - Timeouts
    - Respuestas que no se pueden parsear

    Attributes:
        message: Mensaje de error
        details: Contexto adicional
        url: URL que causó el error (si está disponible)
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, url: Optional[str] = None):
        super().__init__(message, details)
        self.url = url
        if url:
            self.details["url"] = url

    @property
    def user_message(self) -> str:
        return f"Error: {self.message}"


class FetchConnectionError(FetchError):
    """Error de conexión con el servidor Overpass.

    Example:
        raise FetchConnectionError(
            "Connection error after 1 attempts",
            url="https://overpass-api.de/api/interpreter"
        )
    """
    pass


class FetchTimeoutError(FetchError):
    """Timeout en la petición al servidor Overpass.

    Example:
        raise FetchTimeoutError(
            "Timeout after 180s (1 attempts)",
            url="https://overpass-api.de/api/interpreter",
            details={"timeout": 180, "attempts": 1}
        )
    """
    pass


class FetchHTTPError(FetchError):
    """Error HTTP del servidor Overpass.

    Attributes:
        status_code: Código de estado HTTP
        response_text: Texto de la respuesta del servidor
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(message, details, url)
        self.status_code = status_code
        self.response_text = response_text

        if status_code is not None:
            self.details["status_code"] = status_code
        if response_text:
            self.details["response_text"] = response_text[:200]  # Limitar longitud
