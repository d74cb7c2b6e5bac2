"""
Cliente asíncrono de la API web de AMap basado en httpx.

Comparte con WebService toda la validación, construcción de consultas y
firma; solo la llamada de red es asíncrona.

Copyright (C) 2019-2025 Institut Cartogràfic i Geològic de Catalunya (ICGC)
Copyright (C) 2025 Goalnefesh

This file is part of amap-webservice. Derived from the Pelias client of
geocoder-mcp, a fork of the Open ICGC QGIS Plugin.
Original project: https://github.com/OpenICGC/QgisPlugin

This program is free software; you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation; either version 2 of the License, or
(at your option) any later version.
"""

import asyncio
import time
from typing import Any

import httpx

from .exceptions import (
    RequestConnectionError,
    RequestFailedError,
    RequestHTTPError,
    RequestTimeoutError,
)
from .webservice import BaseWebService


class AsyncWebService(BaseWebService):
    """Cliente asíncrono de la API web de AMap.

    Los métodos de operación validan los parámetros en el momento de la
    llamada y devuelven un awaitable con la respuesta decodificada.

    Example:
        async with AsyncWebService(key="mi-key") as amap:
            data = await amap.get_live_weather("110101")

    Attributes:
        client: httpx.AsyncClient en uso (None hasta la primera petición si es propio)
    """

    def __init__(self, key: str | None = None, *, http_client: httpx.AsyncClient | None = None, **kwargs: Any):
        """Inicializa el cliente.

        Args:
            key: Clave de la API web
            http_client: Cliente httpx.AsyncClient externo opcional. Permite
                        compartir el pool de conexiones. El cliente NO lo
                        cerrará; el usuario es responsable. Con un cliente
                        externo, proxy y verify_ssl son los del propio cliente.
            **kwargs: Resto de opciones de BaseWebService
        """
        super().__init__(key, **kwargs)
        self.client = http_client
        self._owns_client = http_client is None
        self._retired_clients: list[httpx.AsyncClient] = []
        # Peticiones en curso por cliente
        self._in_flight: dict[httpx.AsyncClient, int] = {}

        # Lock para inicialización segura del cliente
        self._client_lock = asyncio.Lock()

    async def get_http_client(self) -> httpx.AsyncClient:
        """Obtiene el cliente httpx de forma segura y perezosa."""
        if self.client is None:
            async with self._client_lock:
                # Doble chequeo dentro del lock
                if self.client is None:
                    transport = self.config.transport
                    self.client = httpx.AsyncClient(
                        proxy=transport.proxy,
                        verify=transport.verify_ssl,
                        timeout=transport.timeout,
                    )
                    await self._close_idle_clients()
        return self.client

    def set_transport_options(self, **options: Any) -> None:
        """Actualiza las opciones de transporte.

        Si el cliente httpx es propio se recrea en la siguiente petición; el
        anterior se cierra en cuanto no tiene peticiones en curso.
        """
        super().set_transport_options(**options)
        if self._owns_client and self.client is not None:
            self._retired_clients.append(self.client)
            self.client = None

    async def _send(self, url: str, params: dict[str, str], output: str):
        transport = self.config.transport
        client = await self.get_http_client()
        self.last_request = url

        self._in_flight[client] = self._in_flight.get(client, 0) + 1
        start_time = time.time()
        try:
            response = await client.get(
                url,
                params=params,
                headers=dict(transport.headers),
                timeout=transport.timeout,
            )

            self.last_request = str(response.url)

            response.raise_for_status()

        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Timeout después de {transport.timeout}s: {url}",
                url=url,
                details={"timeout": transport.timeout},
            ) from e
        except httpx.NetworkError as e:
            raise RequestConnectionError(f"Error de conexión con el servidor: {url}", url=url) from e
        except httpx.HTTPStatusError as e:
            raise RequestHTTPError(
                f"Error HTTP {e.response.status_code} en la petición",
                url=url,
                status_code=e.response.status_code,
                response_text=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise RequestFailedError(f"Error en la petición AMap: {e}", url=url) from e
        finally:
            self._in_flight[client] -= 1
            if not self._in_flight[client]:
                del self._in_flight[client]
            await self._close_idle_clients()

        self._log_request(url, params, response.status_code, (time.time() - start_time) * 1000)
        return self._decode(response.text, output, url)

    async def _close_idle_clients(self) -> None:
        """Cierra los clientes retirados sin peticiones en curso."""
        idle = [c for c in self._retired_clients if c not in self._in_flight]
        for client in idle:
            self._retired_clients.remove(client)
            await client.aclose()

    async def close(self) -> None:
        """Cierra los clientes httpx propios."""
        for client in self._retired_clients:
            await client.aclose()
        self._retired_clients.clear()
        if self._owns_client and self.client is not None:
            await self.client.aclose()
            self.client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
