"""
Modelos de datos para el cliente AMap.
"""

from .response import AmapResponse

__all__ = ["AmapResponse"]
