"""
Utilidades para construir los parámetros de consulta (QueryParameters).

Los valores se normalizan al texto que viaja en la URL antes de firmar, de
forma que la firma se calcula exactamente sobre lo que se envía.
"""

import json
from collections.abc import Mapping
from typing import Any

from .exceptions import InvalidParameterError

__all__ = ["is_empty", "to_query_value", "compact_query"]


def is_empty(value: Any) -> bool:
    """Indica si un valor se considera vacío y debe omitirse de la consulta.

    Vacío significa: None o cadena vacía. Los valores 0, False y las
    colecciones vacías NO son vacíos (p.ej. homeorcorp=0 se envía tal cual).
    """
    return value is None or (isinstance(value, str) and value == "")


def to_query_value(value: Any) -> str:
    """Convierte un valor de parámetro a su representación textual en la URL.

    Raises:
        InvalidParameterError: Si el tipo del valor no es representable
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple, dict)):
        # Listas de puntos (grasproad) y similares viajan como JSON compacto
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    raise InvalidParameterError(
        "Tipo de valor no soportado en la consulta",
        details={"received_type": type(value).__name__},
    )


def compact_query(query: Mapping[str, Any]) -> dict[str, str]:
    """Elimina los valores vacíos y normaliza el resto, conservando el orden de inserción."""
    return {name: to_query_value(value) for name, value in query.items() if not is_empty(value)}
