"""
Configuración de logging para el cliente AMap.

El cliente solo escribe en el logger "amap" (con NullHandler); este módulo
es para las aplicaciones que quieran logs en texto o en JSON estructurado.
"""

import contextvars
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Context variable para correlation_id (permite trazar peticiones en entornos async)
correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Nunca se vuelcan en claro aunque lleguen como campos extra
SENSITIVE_FIELDS = frozenset({"key", "sig", "private_key"})

_RESERVED_FIELDS = frozenset(logging.LogRecord(
    "amap", logging.INFO, __file__, 0, "", None, None
).__dict__) | {"message", "asctime", "taskName"}


def set_correlation_id(correlation_id: str) -> None:
    """Establece el correlation_id para la petición actual."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Obtiene el correlation_id de la petición actual o None."""
    return correlation_id_var.get()


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: ("***" if k in SENSITIVE_FIELDS else _mask(v)) for k, v in value.items()}
    return value


class StructuredJSONFormatter(logging.Formatter):
    """
    Formateador de logs en formato JSON.

    Añade el correlation_id si está establecido, la excepción si existe y
    los campos extra del registro (endpoint, params, status_code...), con
    las credenciales ocultas.
    """

    def _serialize_value(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, dict):
            return {str(k): self._serialize_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._serialize_value(v) for v in value]
        if isinstance(value, datetime):
            return value.isoformat()
        if hasattr(value, "model_dump"):
            return self._serialize_value(value.model_dump())
        return str(value)

    def format(self, record: logging.LogRecord) -> str:
        """
        Formatea el registro de log como una cadena JSON.

        Args:
            record: El registro de log a formatear.

        Returns:
            str: Representación JSON del log.
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
        }

        corr_id = get_correlation_id()
        if corr_id:
            log_data["correlation_id"] = corr_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_FIELDS or key.startswith("_"):
                continue
            if key in SENSITIVE_FIELDS:
                log_data[key] = "***"
            else:
                log_data[key] = self._serialize_value(_mask(value))

        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    logger_name: str = "amap"
) -> logging.Logger:
    """
    Configura el sistema de logging del cliente.

    Args:
        level: Nivel de logging (default: logging.INFO)
        json_format: Si es True, usa StructuredJSONFormatter
        logger_name: Nombre del logger (default: "amap")

    Returns:
        logging.Logger: Logger configurado
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    # Evitar duplicar manejadores (el NullHandler del cliente no cuenta)
    if not any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        handler = logging.StreamHandler()

        if json_format:
            formatter = StructuredJSONFormatter()
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
