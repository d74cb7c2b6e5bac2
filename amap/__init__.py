"""
AMap - Cliente de la API web de AMap (Gaode)
============================================

Geocodificación, geocodificación inversa, rutas, distancias, distritos,
búsqueda de POI, eventos y estado del tráfico, localización por IP, mapas
estáticos, conversión de coordenadas, tiempo, sugerencias de entrada y
corrección de trayectorias, con firma digital opcional de las peticiones.

API Dual (Sync/Async):
    # API Sync
    from amap import WebService

    amap = WebService(key="mi-key")
    data = amap.get_geo("北京市朝阳区阜通东大街6号", city="北京")

    # API Async
    import asyncio
    from amap import AsyncWebService

    async def main():
        async with AsyncWebService(key="mi-key", sign=True, private_key="secreto") as amap:
            data = await amap.get_forecast_weather("110101")

    asyncio.run(main())

Las respuestas JSON se devuelven decodificadas (dict/list) y las XML como
texto sin modificar. AmapResponse permite validar el sobre status/info.
"""

from .async_webservice import AsyncWebService
from .config import ClientConfig, TransportOptions
from .endpoints import ENDPOINTS, Endpoint
from .models import AmapResponse
from .signature import signature
from .webservice import BaseWebService, WebService
from .exceptions import (
    AmapError,
    ConfigurationError,
    InvalidParameterError,
    InvalidParameter,
    RequestFailedError,
    RequestConnectionError,
    RequestTimeoutError,
    RequestHTTPError,
    DecodeError,
    ServiceStatusError,
)

__version__ = "1.0.0"
__all__ = [
    "WebService",
    "AsyncWebService",
    "BaseWebService",
    "ClientConfig",
    "TransportOptions",
    "Endpoint",
    "ENDPOINTS",
    "AmapResponse",
    "signature",
    # Excepciones
    "AmapError",
    "ConfigurationError",
    "InvalidParameterError",
    "InvalidParameter",
    "RequestFailedError",
    "RequestConnectionError",
    "RequestTimeoutError",
    "RequestHTTPError",
    "DecodeError",
    "ServiceStatusError",
]
