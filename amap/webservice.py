"""
Cliente de la API web de AMap (geocodificación, rutas, POI, tiempo, tráfico...)
==============================================================================

Cada operación valida sus parámetros contra la tabla de endpoints, construye
la consulta y la delega en get_request(), que añade el formato de respuesta y
la firma opcional, hace la petición GET y decodifica la respuesta.

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

import json
import logging
import time
from collections.abc import Mapping
from typing import Any

import requests
from requests.exceptions import ConnectionError, HTTPError, RequestException, Timeout

from .config import ClientConfig
from .endpoints import ENDPOINTS, RESPONSE_FORMATS
from .exceptions import (
    DecodeError,
    InvalidParameterError,
    RequestConnectionError,
    RequestFailedError,
    RequestHTTPError,
    RequestTimeoutError,
)
from .query import compact_query
from .signature import signature

# Parámetros que nunca se escriben en los logs
_MASKED_PARAMS = ("key", "sig")


def mask_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Copia de los parámetros con las credenciales ocultas (para logs)."""
    return {k: ("***" if k in _MASKED_PARAMS else v) for k, v in params.items()}


class BaseWebService:
    """Lógica común a los clientes síncrono y asíncrono.

    Las subclases solo implementan _send(); todo lo demás (validación,
    construcción de la consulta, firma y decodificación) es síncrono y se
    ejecuta al llamar al método, antes de cualquier actividad de red.

    Attributes:
        config: Configuración del cliente (ClientConfig)
        log: Logger del cliente
    """

    def __init__(
        self,
        key: str | None = None,
        sign: bool = False,
        private_key: str | None = None,
        timeout: float = 5,
        proxy: str | None = None,
        headers: Mapping[str, str] | None = None,
        verify_ssl: bool = True,
        logger: logging.Logger | None = None,
        config: ClientConfig | None = None,
    ):
        """Inicializa el cliente.

        Args:
            key: Clave de la API web (obligatoria)
            sign: Activa la firma digital de las peticiones
            private_key: Clave privada (obligatoria si sign=True)
            timeout: Timeout en segundos
            proxy: URL del proxy
            headers: Cabeceras HTTP adicionales
            verify_ssl: Verificar certificados SSL (default: True)
            logger: Logger opcional
            config: ClientConfig ya construida; si se indica, se ignoran los
                    parámetros anteriores

        Raises:
            ConfigurationError: Si falta key, o falta private_key con sign=True
        """
        if config is None:
            config = ClientConfig.create(
                key=key,
                sign=sign,
                private_key=private_key,
                transport={
                    "timeout": timeout,
                    "proxy": proxy,
                    "headers": dict(headers or {}),
                    "verify_ssl": verify_ssl,
                },
            )
        self.config = config
        self.last_request: str | None = None

        if logger:
            self.log = logger
        else:
            self.log = logging.getLogger("amap")
            self.log.addHandler(logging.NullHandler())

    @property
    def key(self) -> str:
        return self.config.key

    @property
    def sign(self) -> bool:
        return self.config.sign

    def set_transport_options(self, **options: Any) -> None:
        """Actualiza las opciones de transporte (timeout, proxy, headers, verify_ssl).

        Solo afecta a las peticiones posteriores; cada petición usa las
        opciones vigentes en el momento de enviarse.
        """
        self.config = self.config.with_transport(**options)

    def last_sent(self) -> str | None:
        """Retorna la URL de la última petición ejecutada (útil para debug)."""
        return self.last_request

    # =========================================================================
    # Despachador
    # =========================================================================

    def get_request(self, query: Mapping[str, Any], url: str = "", format: str = "json"):
        """Ejecuta una petición GET contra un endpoint.

        Args:
            query: Parámetros de la consulta ya validados
            url: URL completa del endpoint
            format: Formato de respuesta, json o xml (sin distinguir mayúsculas)

        Returns:
            El JSON decodificado (dict/list) o el texto XML sin modificar. En el
            cliente asíncrono, un awaitable con ese resultado.

        Raises:
            InvalidParameterError: URL vacía o formato no soportado
            RequestFailedError: Fallo de red o respuesta HTTP no 2xx
            DecodeError: Respuesta JSON mal formada
        """
        url, params, output = self._prepare(query, url, format)
        return self._send(url, params, output)

    def _prepare(self, query: Mapping[str, Any], url: str, format: str) -> tuple[str, dict[str, str], str]:
        """Valida y finaliza la consulta: output y, si procede, sig."""
        if not url:
            raise InvalidParameterError("La URL del endpoint es obligatoria")

        output = format.lower() if isinstance(format, str) else format
        if output not in RESPONSE_FORMATS:
            raise InvalidParameterError(
                f"Formato de respuesta inválido (json/xml): {format}",
                details={"param": "output", "value": format},
            )

        params = compact_query(query)
        params.pop("sig", None)
        params["output"] = output

        # La firma cubre output pero no a sí misma
        if self.config.sign:
            params["sig"] = signature(params, self.config.private_key)

        return url, params, output

    def _send(self, url: str, params: dict[str, str], output: str):
        raise NotImplementedError

    def _decode(self, text: str, output: str, url: str):
        """Decodifica el cuerpo según el formato pedido."""
        if output == "xml":
            return text
        try:
            return json.loads(text)
        except ValueError as e:
            raise DecodeError(
                f"Error parseando respuesta JSON: {e}",
                url=url,
                response_text=text,
            ) from e

    def _log_request(self, url: str, params: Mapping[str, Any], status: int, elapsed: float) -> None:
        self.log.debug(
            "[NETWORK_REQ] %s | Status: %d | Time: %.2fms",
            url, status, elapsed,
            extra={"endpoint": url, "params": mask_params(params), "status_code": status},
        )

    # =========================================================================
    # Operaciones de la API
    # =========================================================================

    def call(self, endpoint_name: str, format: str = "json", **params: Any):
        """Ejecuta cualquier operación de la tabla de endpoints.

        Args:
            endpoint_name: Clave de amap.endpoints.ENDPOINTS (p.ej. "geo")
            format: json o xml
            **params: Parámetros de la operación

        Raises:
            InvalidParameterError: Operación desconocida o parámetros inválidos
        """
        endpoint = ENDPOINTS.get(endpoint_name)
        if endpoint is None:
            raise InvalidParameterError(
                f"Operación desconocida: {endpoint_name}",
                details={"endpoint": endpoint_name},
            )
        query = endpoint.build_query(self.config.key, params)
        return self.get_request(query, endpoint.url, format)

    def get_geo(self, address: str, city: str = "", format: str = "json"):
        """Geocodificación: convierte una dirección en coordenadas.

        Args:
            address: Dirección estructurada (obligatoria)
            city: Ciudad en la que buscar (nombre, citycode o adcode)
            format: json o xml
        """
        return self.call("geo", format, address=address, city=city)

    def get_regeo(self, location: str = "", extensions: str = "base", format: str = "json", **params: Any):
        """Geocodificación inversa: obtiene la dirección de unas coordenadas.

        Args:
            location: "lng,lat" (obligatorio)
            extensions: base o all
            format: json o xml
            **params: poitype, radius (1000), roadlevel, homeorcorp (0), batch, callback
        """
        return self.call("regeo", format, location=location, extensions=extensions, **params)

    def walking(self, origin: str, destination: str, format: str = "json", **params: Any):
        """Ruta a pie."""
        return self.call("walking", format, origin=origin, destination=destination, **params)

    def transit(self, origin: str, destination: str, city: str, format: str = "json", **params: Any):
        """Ruta en transporte público (integrada)."""
        return self.call("transit", format, origin=origin, destination=destination, city=city, **params)

    def driving(self, origin: str, destination: str, format: str = "json", **params: Any):
        """Ruta en coche."""
        return self.call("driving", format, origin=origin, destination=destination, **params)

    def bicycling(self, origin: str, destination: str, format: str = "json", **params: Any):
        """Ruta en bicicleta."""
        return self.call("bicycling", format, origin=origin, destination=destination, **params)

    def electrobike(self, origin: str, destination: str, format: str = "json", **params: Any):
        """Ruta en bicicleta eléctrica."""
        return self.call("electrobike", format, origin=origin, destination=destination, **params)

    def future_driving(
        self,
        origin: str,
        destination: str,
        firsttime: int | str,
        interval: int | str,
        count: int | str,
        format: str = "json",
        **params: Any,
    ):
        """Ruta en coche con hora de salida futura.

        Args:
            firsttime: Primera hora de salida (timestamp unix)
            interval: Intervalo entre salidas en segundos
            count: Número de horas de salida a calcular
        """
        return self.call(
            "etd_driving", format,
            origin=origin, destination=destination,
            firsttime=firsttime, interval=interval, count=count,
            **params,
        )

    def distance(self, origins: str, destination: str, format: str = "json", **params: Any):
        """Medición de distancias entre uno o varios orígenes y un destino."""
        return self.call("distance", format, origins=origins, destination=destination, **params)

    def district(self, keywords: str = "", format: str = "json", **params: Any):
        """Consulta de distritos administrativos."""
        return self.call("district", format, keywords=keywords, **params)

    def text_search(self, keywords: str = "", types: str = "", format: str = "json", **params: Any):
        """Búsqueda de POI por palabra clave o tipo (al menos uno es obligatorio)."""
        return self.call("text_search", format, keywords=keywords, types=types, **params)

    def around_search(self, location: str, format: str = "json", **params: Any):
        """Búsqueda de POI alrededor de un punto."""
        return self.call("around_search", format, location=location, **params)

    def polygon_search(self, polygon: str, format: str = "json", **params: Any):
        """Búsqueda de POI dentro de un polígono."""
        return self.call("polygon_search", format, polygon=polygon, **params)

    def detail_search(self, id: str, format: str = "json", **params: Any):
        """Detalle de un POI por su identificador."""
        return self.call("detail_search", format, id=id, **params)

    def query_by_adcode(self, adcode: str, format: str = "json", **params: Any):
        """Eventos de tráfico de una división administrativa."""
        return self.call("query_by_adcode", format, adcode=adcode, **params)

    def ip_location(self, ip: str = "", format: str = "json", **params: Any):
        """Localización por IP (sin ip, se usa la del que hace la petición)."""
        return self.call("ip", format, ip=ip, **params)

    def static_map(self, location: str, zoom: int | str, format: str = "json", **params: Any):
        """Mapa estático. El contenido se devuelve decodificado según format."""
        return self.call("staticmap", format, location=location, zoom=zoom, **params)

    def convert(self, locations: str, coordsys: str = "autonavi", format: str = "json"):
        """Conversión de coordenadas (gps, mapbar, baidu) al sistema de AMap."""
        return self.call("convert", format, locations=locations, coordsys=coordsys)

    def get_weather(self, city: str, extensions: str = "base", format: str = "json"):
        """Consulta del tiempo.

        Args:
            city: adcode de la ciudad
            extensions: base (tiempo actual) o all (previsión)
            format: json o xml
        """
        return self.call("weather", format, city=city, extensions=extensions)

    def get_live_weather(self, city: str, format: str = "json"):
        """Tiempo actual."""
        return self.get_weather(city, "base", format)

    def get_forecast_weather(self, city: str, format: str = "json"):
        """Previsión del tiempo."""
        return self.get_weather(city, "all", format)

    def input_tips(self, keywords: str, format: str = "json", **params: Any):
        """Sugerencias de entrada (autocompletado)."""
        return self.call("input_tips", format, keywords=keywords, **params)

    def rectangle_traffic(self, rectangle: str, format: str = "json", **params: Any):
        """Estado del tráfico en un rectángulo."""
        return self.call("rectangle_traffic", format, rectangle=rectangle, **params)

    def circle_traffic(self, location: str, format: str = "json", **params: Any):
        """Estado del tráfico en un círculo."""
        return self.call("circle_traffic", format, location=location, **params)

    def road_traffic(self, name: str, format: str = "json", **params: Any):
        """Estado del tráfico de una vía (requiere adcode o city)."""
        return self.call("road_traffic", format, name=name, **params)

    def grasp_road(self, points, format: str = "json"):
        """Corrección de trayectorias.

        Args:
            points: Lista de puntos {"x", "y", "sp", "ag", "tm"} o su JSON ya serializado
        """
        return self.call("grasp_road", format, points=points)


class WebService(BaseWebService):
    """Cliente síncrono de la API web de AMap basado en requests.

    Example:
        with WebService(key="mi-key") as amap:
            data = amap.get_geo("北京市朝阳区阜通东大街6号", city="北京")

    Attributes:
        session: Sesión de requests usada para las peticiones
    """

    def __init__(self, key: str | None = None, *, session: requests.Session | None = None, **kwargs: Any):
        """Inicializa el cliente.

        Args:
            key: Clave de la API web
            session: Sesión de requests externa opcional. El cliente NO la
                     cerrará; el usuario es responsable.
            **kwargs: Resto de opciones de BaseWebService
        """
        super().__init__(key, **kwargs)
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def _send(self, url: str, params: dict[str, str], output: str):
        transport = self.config.transport
        proxies = {"http": transport.proxy, "https": transport.proxy} if transport.proxy else None
        self.last_request = url

        start_time = time.time()
        try:
            response = self.session.get(
                url,
                params=params,
                headers=dict(transport.headers) or None,
                timeout=transport.timeout,
                proxies=proxies,
                verify=transport.verify_ssl,
            )

            # Guardar URL completa con parámetros para debug
            self.last_request = response.url

            response.raise_for_status()

        except Timeout as e:
            raise RequestTimeoutError(
                f"Timeout después de {transport.timeout}s: {url}",
                url=url,
                details={"timeout": transport.timeout},
            ) from e
        except ConnectionError as e:
            raise RequestConnectionError(f"Error de conexión con el servidor: {url}", url=url) from e
        except HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise RequestHTTPError(
                f"Error HTTP {status} en la petición",
                url=url,
                status_code=status,
                response_text=e.response.text if e.response is not None else None,
            ) from e
        except RequestException as e:
            raise RequestFailedError(f"Error en la petición AMap: {e}", url=url) from e

        self._log_request(url, params, response.status_code, (time.time() - start_time) * 1000)
        return self._decode(response.text, output, url)

    def close(self) -> None:
        """Cierra la sesión de requests si es propia del cliente."""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
