"""
Cliente asíncrono para la API Overpass (OpenStreetMap).

Lanza una única consulta: todos los nodos y relaciones con nombre dentro del
área administrativa cuyo nombre coincide exactamente con la ciudad pedida.
"""

import asyncio
import logging
import random

import httpx

from .exceptions import (
    ConfigurationError,
    FetchConnectionError,
    FetchError,
    FetchHTTPError,
    FetchTimeoutError,
)

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"

QUERY_TEMPLATE = """
[out:json][timeout:{timeout}];
area["name"="{city}"]->.a;
(
  node(area.a)[name];
  relation(area.a)[name];
);
out center;
"""

# Códigos HTTP transitorios que se reintentan si retry_on_5xx está activo
RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def escape_ql_string(value):
    """Escapa un valor para incluirlo entre comillas dobles en Overpass QL."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class OverpassClient:
    """Cliente para el intérprete Overpass.

    Utiliza httpx con reintentos opcionales (backoff exponencial con jitter)
    para timeouts, errores de conexión y respuestas 429/5xx.

    Attributes:
        url: URL del intérprete Overpass
        timeout: Timeout en segundos de la petición HTTP
        query_timeout: Timeout declarado en la consulta ([timeout:N])
        client: Cliente httpx.AsyncClient utilizado

    Example:
        async with OverpassClient() as client:
            data = await client.fetch_city("Paris")
    """

    def __init__(
        self,
        url=DEFAULT_OVERPASS_URL,
        default_timeout=180,
        query_timeout=180,
        max_retries=0,
        retry_base_delay=0.5,
        retry_max_delay=10.0,
        retry_on_5xx=True,
        verify_ssl=True,
        http_client: httpx.AsyncClient | None = None,
        logger=None,
    ):
        """Configura la conexión al servidor.

        Args:
            url: URL del intérprete Overpass
            default_timeout: Timeout HTTP en segundos (default: 180)
            query_timeout: Timeout declarado al servidor en la consulta (default: 180)
            max_retries: Número máximo de reintentos (default: 0, sin reintentos)
            retry_base_delay: Delay inicial del backoff (segundos)
            retry_max_delay: Delay máximo entre reintentos (segundos)
            retry_on_5xx: Reintentar en respuestas 429 y 5xx
            verify_ssl: Verificar certificados SSL
            http_client: Cliente httpx externo opcional. No se cerrará con close().
            logger: Logger opcional
        """
        if not url or not url.strip():
            raise ConfigurationError("Overpass URL cannot be empty", details={"url": url})
        if max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0", details={"max_retries": max_retries})

        self.url = url
        self.timeout = default_timeout
        self.query_timeout = query_timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.retry_on_5xx = retry_on_5xx
        self.last_request = None
        self.log = logger or logging.getLogger("randomplace.overpass")

        if http_client is not None:
            if not verify_ssl:
                self.log.warning(
                    "verify_ssl=False ignored: the external http_client keeps its own SSL settings"
                )
            self.client = http_client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(timeout=default_timeout, verify=verify_ssl)
            self._owns_client = True

    @staticmethod
    def build_query(city, timeout=180):
        """Construye la consulta Overpass QL para una ciudad.

        Args:
            city: Nombre exacto del área administrativa
            timeout: Timeout declarado al servidor en segundos

        Returns:
            str: Consulta Overpass QL
        """
        return QUERY_TEMPLATE.format(timeout=timeout, city=escape_ql_string(city))

    async def fetch_city(self, city):
        """Obtiene los lugares con nombre de una ciudad.

        Args:
            city: Nombre de la ciudad (coincidencia exacta con el área OSM)

        Returns:
            dict: Respuesta JSON de Overpass (con la lista 'elements')

        Raises:
            FetchError: Si la petición o el parseo fallan
        """
        return await self.call(self.build_query(city, self.query_timeout))

    def _calculate_backoff_delay(self, attempt):
        """Delay exponencial con jitter de +-10%, limitado a retry_max_delay."""
        delay = min(self.retry_base_delay * (2 ** attempt), self.retry_max_delay)
        return min(delay * random.uniform(0.9, 1.1), self.retry_max_delay)

    async def call(self, query):
        """Envía una consulta al intérprete (POST con el campo 'data').

        Args:
            query: Consulta Overpass QL

        Returns:
            dict: Respuesta JSON parseada

        Raises:
            FetchTimeoutError: Si se agotan los intentos por timeout
            FetchConnectionError: Si se agotan los intentos por error de conexión
            FetchHTTPError: Si el servidor responde con un error HTTP
            FetchError: Si la respuesta no es un objeto JSON
        """
        self.last_request = query
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                response = await self.client.post(self.url, data={"data": query})
            except httpx.TimeoutException as e:
                if last_attempt:
                    raise FetchTimeoutError(
                        f"Timeout after {self.timeout}s ({attempts} attempts)",
                        url=self.url,
                        details={"timeout": self.timeout, "attempts": attempts},
                    ) from e
                self.log.warning(
                    "Overpass timeout (attempt %d/%d)", attempt + 1, attempts,
                    extra={"event": "RETRY", "attempt": attempt + 1}
                )
            except httpx.TransportError as e:
                if last_attempt:
                    raise FetchConnectionError(
                        f"Connection error after {attempts} attempts: {e}",
                        url=self.url,
                    ) from e
                self.log.warning(
                    "Overpass connection error (attempt %d/%d): %s", attempt + 1, attempts, e,
                    extra={"event": "RETRY", "attempt": attempt + 1}
                )
            else:
                if response.is_success:
                    return self._parse_json(response)

                status = response.status_code
                retryable = self.retry_on_5xx and status in RETRY_STATUS_CODES
                if not retryable or last_attempt:
                    message = f"Network error: HTTP {status}"
                    if retryable and attempts > 1:
                        message += f" ({attempts} attempts)"
                    raise FetchHTTPError(
                        message,
                        url=self.url,
                        status_code=status,
                        response_text=response.text,
                    )
                self.log.warning(
                    "Overpass HTTP %d (attempt %d/%d)", status, attempt + 1, attempts,
                    extra={"event": "RETRY", "attempt": attempt + 1, "status_code": status}
                )

            await asyncio.sleep(self._calculate_backoff_delay(attempt))

    def _parse_json(self, response):
        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON response: {e}", url=self.url) from e
        if not isinstance(data, dict):
            raise FetchError(
                "Invalid JSON response: expected an object",
                url=self.url,
                details={"received_type": type(data).__name__},
            )
        return data

    def last_sent(self):
        """Retorna la última consulta enviada (útil para debug)."""
        return self.last_request

    async def close(self):
        """Cierra el cliente httpx si es propio. Idempotente."""
        if self._owns_client and not self.client.is_closed:
            await self.client.aclose()

    async def __aenter__(self):
        """Soporte para async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Cierra el cliente al salir del async context manager."""
        await self.close()
        return False
