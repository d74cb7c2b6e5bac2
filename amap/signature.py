"""
Firma digital de las peticiones (parámetro sig).

El algoritmo es el del servicio AMap: parámetros ordenados por nombre
(orden de bytes), concatenados como k1=v1&k2=v2 sin codificar, seguidos de
la clave privada sin separador, y MD5 en hexadecimal en minúsculas.
"""

from collections.abc import Mapping
from hashlib import md5
from typing import Any

from .query import compact_query

__all__ = ["signature", "signature_base_string"]


def signature_base_string(params: Mapping[str, Any], private_key: str) -> str:
    """Devuelve la cadena exacta sobre la que se calcula el MD5.

    Args:
        params: Parámetros de la petición (sin sig). Los vacíos se descartan.
        private_key: Clave privada de firma

    Returns:
        str: "k1=v1&k2=v2...<private_key>"
    """
    query = compact_query(params)
    pairs = sorted(query.items(), key=lambda item: item[0].encode("utf-8"))
    return "&".join(f"{name}={value}" for name, value in pairs) + private_key


def signature(params: Mapping[str, Any], private_key: str) -> str:
    """Calcula la firma sig de un conjunto de parámetros.

    Es determinista: el mismo conjunto de parámetros produce la misma firma
    independientemente de su orden de inserción.

    Returns:
        str: MD5 en hexadecimal (32 caracteres en minúsculas)
    """
    return md5(signature_base_string(params, private_key).encode("utf-8")).hexdigest()
