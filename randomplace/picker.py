"""
RandomPlace - Lugar aleatorio en una ciudad
===========================================

Clase principal: obtiene los lugares con nombre de una ciudad desde Overpass,
los filtra opcionalmente por distancia a una posición de referencia y elige
uno al azar.
"""

import asyncio
import logging
import math
import random
import time

import httpx

from .exceptions import EmptyInputError, FetchError, NoResultsError
from .geo import haversine_km, map_url
from .models import CityResponse, GeoEntity, ReferencePosition, SelectionResult
from .overpass import DEFAULT_OVERPASS_URL, OverpassClient
from .utils.cache import CityCache


class LocationPicker:
    """Selector de lugares aleatorios dentro de una ciudad.

    Example:
        async with LocationPicker() as picker:
            result = await picker.pick_random_location("Paris")
            print(result.to_text())

            # Solo lugares a menos de 2 km de una posición
            here = ReferencePosition(latitude=48.8584, longitude=2.2945)
            result = await picker.pick_random_location("Paris", 2, here)

    Attributes:
        cache: Caché de lugares por ciudad (propiedad del selector)
        timeout: Timeout HTTP en segundos
    """

    def __init__(
        self,
        logger=None,
        overpass_url=DEFAULT_OVERPASS_URL,
        timeout=180,
        query_timeout=180,
        verify_ssl=True,
        max_retries=0,
        retry_base_delay=0.5,
        retry_max_delay=10.0,
        retry_on_5xx=True,
        cache: CityCache | None = None,
        rng: random.Random | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Inicializa el selector.

        Args:
            logger: Logger opcional para debug
            overpass_url: URL del intérprete Overpass
            timeout: Timeout HTTP en segundos
            query_timeout: Timeout declarado en la consulta Overpass
            verify_ssl: Verificar certificados SSL
            max_retries: Número máximo de reintentos (0 = sin reintentos)
            retry_base_delay: Delay inicial del backoff exponencial (segundos)
            retry_max_delay: Delay máximo entre reintentos (segundos)
            retry_on_5xx: Reintentar en errores 429/5xx
            cache: Caché de ciudades; se crea una nueva si no se indica
            rng: Generador aleatorio (random.Random) para la selección
            http_client: Cliente httpx.AsyncClient externo opcional. El selector
                        NO lo cerrará; el usuario es responsable.
        """
        self.timeout = timeout
        self.query_timeout = query_timeout
        self.verify_ssl = verify_ssl
        self._overpass_url = overpass_url
        self._overpass_client = None
        self._external_http_client = http_client

        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._retry_on_5xx = retry_on_5xx

        self.cache = cache if cache is not None else CityCache()
        self._rng = rng or random.Random()

        # Lock para inicialización segura del cliente
        self._client_lock = asyncio.Lock()

        if logger:
            self.log = logger
        else:
            self.log = logging.getLogger("randomplace")
            if not self.log.handlers:
                self.log.addHandler(logging.NullHandler())

    async def get_overpass_client(self) -> OverpassClient:
        """Obtiene el cliente Overpass de forma segura y perezosa."""
        if self._overpass_client is None:
            async with self._client_lock:
                if self._overpass_client is None:
                    self._overpass_client = OverpassClient(
                        self._overpass_url,
                        default_timeout=self.timeout,
                        query_timeout=self.query_timeout,
                        max_retries=self._max_retries,
                        retry_base_delay=self._retry_base_delay,
                        retry_max_delay=self._retry_max_delay,
                        retry_on_5xx=self._retry_on_5xx,
                        verify_ssl=self.verify_ssl,
                        http_client=self._external_http_client,
                        logger=self.log,
                    )
        return self._overpass_client

    async def _reset_client(self):
        """Resetea el cliente cerrando el anterior."""
        async with self._client_lock:
            if self._overpass_client:
                await self._overpass_client.close()
                self._overpass_client = None

    async def close(self):
        """Cierra el cliente http subyacente."""
        if self._overpass_client:
            await self._overpass_client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def clear_cache(self) -> int:
        """Limpia la caché de ciudades y retorna el número de entradas eliminadas."""
        return self.cache.clear()

    # =========================================================================
    # API Principal
    # =========================================================================

    @staticmethod
    def parse_radius(value) -> float:
        """Convierte el radio introducido en un número de kilómetros.

        None, cadenas vacías, valores no numéricos y NaN equivalen a 0
        (sin filtro por distancia).
        """
        if value is None:
            return 0.0
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return 0.0
        try:
            radius = float(value)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(radius):
            return 0.0
        return radius

    async def find_entities(self, city: str, use_cache: bool = True) -> list[GeoEntity]:
        """Obtiene los lugares con nombre de una ciudad (caché o Overpass).

        Args:
            city: Nombre de la ciudad; se recortan los espacios
            use_cache: Si es True, consulta y rellena la caché

        Returns:
            list[GeoEntity]: Lugares de la ciudad, posiblemente vacía

        Raises:
            EmptyInputError: Si la ciudad está vacía
            FetchError: Si falla la consulta a Overpass
        """
        response = await self.find_entities_response(city, use_cache=use_cache)
        return response.entities

    async def find_entities_response(self, city: str, use_cache: bool = True) -> CityResponse:
        """Obtiene los lugares de una ciudad y devuelve un CityResponse completo."""
        trimmed_city = (city or "").strip()
        if not trimmed_city:
            raise EmptyInputError()

        start_time = time.time()
        if use_cache:
            cached = self.cache.get(trimmed_city)
            if cached is not None:
                self.log.info(
                    "[CACHE_HIT] city: %s", trimmed_city,
                    extra={"city": trimmed_city, "results": len(cached)}
                )
                return CityResponse(
                    city=trimmed_city, entities=cached, count=len(cached), from_cache=True,
                    time_ms=(time.time() - start_time) * 1000,
                )

        self.log.debug("[CACHE_MISS] city: %s", trimmed_city, extra={"city": trimmed_city})
        try:
            client = await self.get_overpass_client()
            data = await client.fetch_city(trimmed_city)
            response = CityResponse.from_elements(trimmed_city, data.get("elements") or [])
        except FetchError as e:
            # Fallo esperado de la fuente: lo informa quien llama
            self.log.error(
                "Overpass error for %s: %s", trimmed_city, e.message,
                extra={"event": "FETCH_ERROR", "city": trimmed_city}
            )
            raise
        except Exception as e:
            self.log.exception(
                "Unexpected error fetching %s: %s", trimmed_city, e,
                extra={"event": "FETCH_ERROR", "city": trimmed_city}
            )
            raise FetchError(
                str(e),
                details={"city": trimmed_city, "error_type": type(e).__name__}
            ) from e

        elapsed = (time.time() - start_time) * 1000
        self.log.info(
            "[NETWORK_REQ] city: %s | Results: %d | Time: %.2fms",
            trimmed_city, response.count, elapsed,
            extra={"city": trimmed_city, "results": response.count, "time_ms": round(elapsed, 2)}
        )

        # La caché solo se escribe tras una consulta completa
        entities = self.cache.set(trimmed_city, response.entities) if use_cache else response.entities
        return CityResponse(
            city=trimmed_city, entities=entities, count=len(entities), time_ms=elapsed
        )

    def candidate_pool(
        self,
        entities: list[GeoEntity],
        radius: float | None = None,
        reference_position: ReferencePosition | None = None,
    ) -> list[GeoEntity]:
        """Filtra los lugares estrictamente dentro del radio.

        Sin posición de referencia o con radio <= 0 se devuelven todos.
        Los lugares sin coordenadas quedan excluidos del filtrado por radio.
        """
        radius = self.parse_radius(radius)
        if reference_position is None or radius <= 0:
            return list(entities)

        pool = []
        for entity in entities:
            coordinate = entity.coordinate
            if coordinate is None:
                continue
            distance = haversine_km(
                reference_position.latitude, reference_position.longitude, *coordinate
            )
            if radius - distance > 0:
                pool.append(entity)
        return pool

    def choose(self, pool: list[GeoEntity]) -> GeoEntity:
        """Elige un lugar con probabilidad uniforme."""
        return pool[self._rng.randrange(len(pool))]

    def describe(
        self, entity: GeoEntity, reference_position: ReferencePosition | None = None
    ) -> SelectionResult:
        """Construye el resultado visible de un lugar.

        Args:
            entity: Lugar elegido
            reference_position: Si se indica, se añade la distancia en km
        """
        coordinate = entity.coordinate
        lat, lon = coordinate if coordinate is not None else (None, None)

        distance_km = None
        if reference_position is not None and coordinate is not None:
            distance_km = round(
                haversine_km(reference_position.latitude, reference_position.longitude, lat, lon), 2
            )

        return SelectionResult(
            entity=entity,
            name=entity.name,
            latitude=lat,
            longitude=lon,
            type=entity.display_type,
            distance_km=distance_km,
            map_url=map_url(lat, lon) if coordinate is not None else None,
        )

    async def pick_random_location(
        self,
        city: str,
        radius: float | None = None,
        reference_position: ReferencePosition | None = None,
        use_cache: bool = True,
    ) -> SelectionResult:
        """Elige un lugar aleatorio de una ciudad.

        Args:
            city: Nombre de la ciudad
            radius: Radio en km; <= 0 o None desactiva el filtro
            reference_position: Posición del usuario (solo se usa con radio > 0)
            use_cache: Si es True, utiliza la caché de ciudades

        Returns:
            SelectionResult: Lugar elegido con los datos para mostrar

        Raises:
            EmptyInputError: Si la ciudad está vacía
            FetchError: Si falla la consulta a Overpass
            NoResultsError: Si no hay lugares o ninguno está dentro del radio
        """
        response = await self.find_entities_response(city, use_cache=use_cache)
        if not response.entities:
            raise NoResultsError(response.city)

        radius = self.parse_radius(radius)
        filtering = reference_position is not None and radius > 0
        pool = self.candidate_pool(response.entities, radius, reference_position)
        if not pool:
            self.log.info(
                "No locations within %s km in %s", radius, response.city,
                extra={"city": response.city, "radius_km": radius, "results": 0}
            )
            raise NoResultsError(response.city, details={"radius_km": radius})

        entity = self.choose(pool)
        self.log.debug(
            "Picked %s (%s/%s) from %d candidates",
            entity.name, entity.osm_type, entity.osm_id, len(pool)
        )
        return self.describe(entity, reference_position if filtering else None)

    # =========================================================================
    # Wrappers Síncronos
    # =========================================================================

    def _sync(self, coro):
        """Ejecuta una corrutina de forma síncrona.

        asyncio.run() cierra el loop al terminar, lo que invalida el cliente
        httpx interno; se resetea para que la siguiente llamada cree uno nuevo.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            coro.close()
            raise RuntimeError(
                "'_sync' methods cannot be used inside a running event loop; "
                "await the async method instead."
            )

        async def _run():
            try:
                return await coro
            finally:
                if self._external_http_client is None:
                    await self._reset_client()

        return asyncio.run(_run())

    def find_entities_sync(self, city: str, use_cache: bool = True) -> list[GeoEntity]:
        """Versión síncrona de find_entities."""
        return self._sync(self.find_entities(city, use_cache=use_cache))

    def pick_random_location_sync(
        self,
        city: str,
        radius: float | None = None,
        reference_position: ReferencePosition | None = None,
        use_cache: bool = True,
    ) -> SelectionResult:
        """Versión síncrona de pick_random_location."""
        return self._sync(
            self.pick_random_location(city, radius, reference_position, use_cache=use_cache)
        )
