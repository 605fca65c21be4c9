"""
Sesión interactiva: estado de la vista (formulario + área de resultados).

PickerSession reproduce el ciclo de un envío del formulario: radio y
posición de referencia, estado de carga, resultado o mensaje de error.
"""

import logging
from contextlib import asynccontextmanager
from enum import Enum

from pydantic import BaseModel

from .exceptions import EmptyInputError, FetchError, LocationPickerError
from .models import ReferencePosition, SelectionResult
from .picker import LocationPicker
from .position import GeolocationRefresh, PositionProvider
from .utils.logging import reset_request_id, set_request_id

INITIAL_MESSAGE = "Result will appear here..."
LOADING_MESSAGE = "Loading data... Please wait."
IDLE_BUTTON_LABEL = "Randomize"
LOADING_BUTTON_LABEL = "Loading..."


class PickerState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


class SessionView(BaseModel):
    """Instantánea de lo que se muestra al usuario."""
    state: PickerState
    button_label: str
    message: str
    result: SelectionResult | None = None
    error: dict | None = None
    request_id: int = 0


class PickerSession:
    """Máquina de estados {Idle, Loading, Success, Failed} sobre un LocationPicker.

    Cada envío recibe un token creciente. Con discard_stale=True (por defecto)
    solo el último envío puede escribir el resultado; con discard_stale=False
    gana la última respuesta en completarse.

    Example:
        session = PickerSession(picker, StaticPositionProvider(here))
        await session.set_radius(2)
        view = await session.submit("Paris")
        print(view.message)
    """

    def __init__(
        self,
        picker: LocationPicker,
        position_provider: PositionProvider | None = None,
        discard_stale: bool = True,
        logger=None,
    ):
        self.picker = picker
        self.discard_stale = discard_stale
        self.log = logger or logging.getLogger("randomplace.session")
        self.geolocation = GeolocationRefresh(position_provider, logger=self.log)

        self.state = PickerState.IDLE
        self.result: SelectionResult | None = None
        self.error: LocationPickerError | None = None
        self.message = INITIAL_MESSAGE
        self._last_token = 0
        self._active_token = 0

    @property
    def radius(self) -> float:
        return self.geolocation.radius

    @property
    def reference_position(self) -> ReferencePosition | None:
        return self.geolocation.position

    @property
    def loading(self) -> bool:
        return self.state is PickerState.LOADING

    @property
    def button_label(self) -> str:
        return LOADING_BUTTON_LABEL if self.loading else IDLE_BUTTON_LABEL

    async def set_radius(self, radius) -> ReferencePosition | None:
        """Cambia el radio y refresca la posición de referencia si corresponde."""
        return await self.geolocation.update(self.picker.parse_radius(radius))

    def view(self) -> SessionView:
        return SessionView(
            state=self.state,
            button_label=self.button_label,
            message=self.message,
            result=self.result,
            error=self.error.to_dict() if self.error else None,
            request_id=self._active_token,
        )

    def _is_current(self, token: int) -> bool:
        return not self.discard_stale or token == self._last_token

    def _succeed(self, token: int, result: SelectionResult) -> None:
        self.state = PickerState.SUCCESS
        self.result = result
        self.error = None
        self.message = result.to_html()
        self._active_token = token

    def _fail(self, token: int, error: LocationPickerError) -> None:
        self.state = PickerState.FAILED
        self.result = None
        self.error = error
        self.message = error.user_message
        self._active_token = token

    @asynccontextmanager
    async def _loading(self, token: int):
        """Entra en LOADING y garantiza salir de él en cualquier caso."""
        self.state = PickerState.LOADING
        self.message = LOADING_MESSAGE
        self._active_token = token
        try:
            yield
        except LocationPickerError as e:
            if self._is_current(token):
                self._fail(token, e)
            else:
                self.log.debug("Discarding error from superseded request %d", token)
        except Exception as e:
            if self._is_current(token):
                self._fail(token, FetchError(str(e), details={"error_type": type(e).__name__}))
            raise
        finally:
            if self.state is PickerState.LOADING and self._is_current(token):
                # Salida sin resultado (p.ej. cancelación): volver a IDLE
                self.state = PickerState.IDLE
                self.message = INITIAL_MESSAGE

    async def submit(self, city: str) -> SessionView:
        """Procesa un envío del formulario.

        Un nombre vacío produce el mensaje de error sin pasar por LOADING.

        Returns:
            SessionView: Estado resultante de la vista
        """
        self._last_token += 1
        token = self._last_token
        ctx_token = set_request_id(str(token))
        try:
            if not (city or "").strip():
                self._fail(token, EmptyInputError())
                return self.view()

            self.log.info("Submit #%d: city=%r radius=%s", token, city, self.radius)
            async with self._loading(token):
                result = await self.picker.pick_random_location(
                    city, self.radius, self.reference_position
                )
                if self._is_current(token):
                    self._succeed(token, result)
                else:
                    self.log.debug("Discarding result from superseded request %d", token)
            return self.view()
        finally:
            reset_request_id(ctx_token)
