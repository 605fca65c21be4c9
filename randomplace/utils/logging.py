"""
Logging de RandomPlace: identificador de envío y salida en líneas JSON.

Cada línea JSON lleva el envío de la sesión (request_id), el tipo de evento
([CACHE_HIT], [CACHE_MISS], [NETWORK_REQ]...) y los campos de la consulta
que el código pasa en extra= (ciudad, número de resultados, tiempo...).
"""

import json
import logging
import contextvars
import re
from datetime import datetime, timezone
from typing import Optional


# Token del envío de PickerSession en curso
request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)

# "[CACHE_HIT] city: Paris" -> CACHE_HIT
EVENT_PREFIX = re.compile(r"^\[(?P<event>[A-Z_]+)\]\s*")

# Campos de extra= que se copian a la línea JSON, en este orden
QUERY_FIELDS = ("city", "radius_km", "results", "time_ms", "attempt", "status_code")


def set_request_id(request_id: Optional[str]) -> contextvars.Token:
    """
    Establece el request_id del envío actual.

    Returns:
        Token para restaurar el valor anterior con reset_request_id()
    """
    return request_id_var.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    request_id_var.reset(token)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def event_of(record: logging.LogRecord) -> Optional[str]:
    """Tipo de evento: extra={"event": ...} o el prefijo [EVENTO] del mensaje."""
    event = getattr(record, "event", None)
    if event:
        return event
    match = EVENT_PREFIX.match(str(record.msg))
    return match.group("event") if match else None


class StructuredJSONFormatter(logging.Formatter):
    """Una línea JSON por registro con el envío, el evento y los campos de consulta."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        event = event_of(record)
        if event:
            log_data["event"] = event

        for field in QUERY_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    logger_name: str = "randomplace"
) -> logging.Logger:
    """
    Añade un StreamHandler al logger del proyecto (una sola vez).

    Args:
        level: Nivel de logging
        json_format: Líneas JSON (StructuredJSONFormatter) en lugar de texto
        logger_name: Logger a configurar
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    if not any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        if json_format:
            handler.setFormatter(StructuredJSONFormatter())
        else:
            handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)

    return logger
