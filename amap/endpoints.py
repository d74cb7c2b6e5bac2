"""
Tabla estática de endpoints de la API web de AMap.

Cada operación del cliente se describe con un Endpoint: URL, parámetros
obligatorios, parámetros opcionales con sus valores por defecto y los
valores permitidos de los parámetros enumerados. La tabla es inmutable y se
define aquí, nunca a partir de datos del usuario.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import InvalidParameterError
from .query import compact_query, is_empty

API_V3_URL = "http://restapi.amap.com/v3"
API_V4_URL = "http://restapi.amap.com/v4"
API_V5_URL = "http://restapi.amap.com/v5"
# Consulta de eventos de tráfico
ET_API_URL = "https://et-api.amap.com/event"

EXTENSIONS = ("base", "all")
COORDSYS = ("gps", "mapbar", "baidu", "autonavi")
RESPONSE_FORMATS = ("json", "xml")


class Endpoint(BaseModel):
    """Descriptor inmutable de un endpoint de la API."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Nombre de la operación")
    base_url: str = Field(..., description="Raíz del servicio (v3, v4, v5 o eventos)")
    path: str = Field(..., description="Ruta del endpoint")
    required: tuple[str, ...] = Field((), description="Parámetros obligatorios")
    required_any: tuple[tuple[str, ...], ...] = Field(
        (), description="Grupos de parámetros de los que al menos uno es obligatorio"
    )
    optional: Mapping[str, Any] = Field(
        default_factory=dict, validate_default=True,
        description="Parámetros opcionales y su valor por defecto (None = sin defecto)"
    )
    choices: Mapping[str, tuple[str, ...]] = Field(
        default_factory=dict, validate_default=True, description="Valores permitidos de los parámetros enumerados"
    )

    @field_validator("optional", "choices", mode="after")
    @classmethod
    def read_only(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        # frozen no protege los diccionarios internos
        return MappingProxyType(dict(value))

    @property
    def url(self) -> str:
        return self.base_url + self.path

    @property
    def params(self) -> tuple[str, ...]:
        """Todos los nombres de parámetro aceptados, en el orden de la consulta."""
        names = list(self.required)
        for group in self.required_any:
            names.extend(n for n in group if n not in names)
        names.extend(n for n in self.optional if n not in names)
        return tuple(names)

    def validate_params(self, params: Mapping[str, Any]) -> None:
        """Valida los parámetros de una llamada contra el descriptor.

        Raises:
            InvalidParameterError: Parámetro desconocido, obligatorio vacío o
                valor enumerado fuera de rango
        """
        accepted = self.params
        for name in params:
            if name not in accepted:
                raise InvalidParameterError(
                    f"Parámetro desconocido para {self.name}: {name}",
                    details={"endpoint": self.name, "param": name},
                )

        for name in self.required:
            if is_empty(params.get(name)):
                raise InvalidParameterError(
                    f"El parámetro {name} es obligatorio",
                    details={"endpoint": self.name, "param": name},
                )

        for group in self.required_any:
            if all(is_empty(params.get(name)) for name in group):
                raise InvalidParameterError(
                    f"Se requiere al menos uno de: {', '.join(group)}",
                    details={"endpoint": self.name, "params": list(group)},
                )

        for name, allowed in self.choices.items():
            value = params.get(name)
            if is_empty(value):
                continue
            if not isinstance(value, str) or value.lower() not in allowed:
                raise InvalidParameterError(
                    f"Valor de {name} inválido ({'/'.join(allowed)}): {value}",
                    details={"endpoint": self.name, "param": name, "value": value},
                )

    def build_query(self, key: str, params: Mapping[str, Any]) -> dict[str, str]:
        """Valida y construye la consulta: key, parámetros con defectos y sin vacíos.

        Un parámetro opcional no indicado (None) toma su valor por defecto; una
        cadena vacía explícita se descarta sin sustituirse por el defecto.
        """
        self.validate_params(params)
        query: dict[str, Any] = {"key": key}
        for name in self.params:
            value = params.get(name)
            if value is None:
                value = self.optional.get(name)
            query[name] = value
        return compact_query(query)


def _endpoint(name, base_url, path, required=(), optional=None, required_any=(), choices=None) -> Endpoint:
    optional = optional or {}
    if choices is None:
        choices = {"extensions": EXTENSIONS} if "extensions" in optional else {}
    return Endpoint(
        name=name,
        base_url=base_url,
        path=path,
        required=tuple(required),
        required_any=tuple(tuple(group) for group in required_any),
        optional=optional,
        choices=choices,
    )


_PAGING = {"offset": 20, "page": 1, "extensions": "base"}

ENDPOINTS: Mapping[str, Endpoint] = MappingProxyType({
    e.name: e
    for e in (
        # Geocodificación
        _endpoint("geo", API_V3_URL, "/geocode/geo", ["address"],
                  {"city": None, "batch": None, "callback": None}),
        _endpoint("regeo", API_V3_URL, "/geocode/regeo", ["location"], {
            "poitype": None,
            "radius": 1000,
            "roadlevel": None,
            "callback": None,
            "homeorcorp": 0,
            "batch": None,
            "extensions": "base",
        }),
        # Planificación de rutas
        _endpoint("walking", API_V3_URL, "/direction/walking", ["origin", "destination"],
                  {"origin_id": None, "destination_id": None, "callback": None}),
        _endpoint("transit", API_V3_URL, "/direction/transit/integrated", ["origin", "destination", "city"], {
            "cityd": None,
            "extensions": "base",
            "strategy": 0,
            "nightflag": 0,
            "date": None,
            "time": None,
            "callback": None,
        }),
        _endpoint("driving", API_V3_URL, "/direction/driving", ["origin", "destination"], {
            "originid": None,
            "destinationid": None,
            "origintype": None,
            "strategy": None,
            "waypoints": None,
            "avoidpolygons": None,
            "avoidroad": None,
            "province": None,
            "number": None,
            "cartype": None,
            "ferry": None,
            "roadaggregation": None,
            "nosteps": None,
            "extensions": "base",
            "callback": None,
        }),
        _endpoint("bicycling", API_V4_URL, "/direction/bicycling", ["origin", "destination"],
                  {"origin_id": None, "destination_id": None}),
        _endpoint("electrobike", API_V5_URL, "/direction/electrobike", ["origin", "destination"],
                  {"origin_id": None, "destination_id": None, "alternative_route": None, "show_fields": None}),
        _endpoint("etd_driving", API_V4_URL, "/etd/driving",
                  ["origin", "destination", "firsttime", "interval", "count"], {
                      "originid": None,
                      "destinationid": None,
                      "origintype": None,
                      "strategy": None,
                      "province": None,
                      "number": None,
                      "cartype": None,
                  }),
        _endpoint("distance", API_V3_URL, "/distance", ["origins", "destination"],
                  {"type": 1, "callback": None}),
        # Consulta de distritos
        _endpoint("district", API_V3_URL, "/config/district", [], {
            "keywords": None,
            "subdistrict": 1,
            "page": None,
            "offset": None,
            "extensions": "base",
            "filter": None,
            "callback": None,
        }),
        # Búsqueda de POI
        _endpoint("text_search", API_V3_URL, "/place/text", [],
                  {"city": None, "citylimit": None, "children": None, **_PAGING, "callback": None},
                  required_any=[("keywords", "types")]),
        _endpoint("around_search", API_V3_URL, "/place/around", ["location"], {
            "keywords": None,
            "types": None,
            "city": None,
            "radius": 3000,
            "sortrule": None,
            **_PAGING,
            "callback": None,
        }),
        _endpoint("polygon_search", API_V3_URL, "/place/polygon", ["polygon"],
                  {"keywords": None, "types": None, **_PAGING, "callback": None}),
        _endpoint("detail_search", API_V3_URL, "/place/detail", ["id"], {"callback": None}),
        # Eventos de tráfico
        _endpoint("query_by_adcode", ET_API_URL, "/queryByAdcode", ["adcode"],
                  {"eventType": None, "isExpressway": None}),
        # Localización por IP
        _endpoint("ip", API_V3_URL, "/ip", [], {"ip": None, "callback": None}),
        # Mapa estático
        _endpoint("staticmap", API_V3_URL, "/staticmap", ["location", "zoom"], {
            "size": None,
            "scale": 1,
            "markers": None,
            "labels": None,
            "paths": None,
            "traffic": None,
        }),
        # Conversión de coordenadas
        _endpoint("convert", API_V3_URL, "/assistant/coordinate/convert", ["locations"],
                  {"coordsys": "autonavi"}, choices={"coordsys": COORDSYS}),
        # Tiempo
        _endpoint("weather", API_V3_URL, "/weather/weatherInfo", ["city"],
                  {"extensions": "base", "callback": None}),
        # Sugerencias de entrada
        _endpoint("input_tips", API_V3_URL, "/assistant/inputtips", ["keywords"], {
            "type": None,
            "location": None,
            "city": None,
            "citylimit": None,
            "datatype": None,
            "callback": None,
        }),
        # Estado del tráfico
        _endpoint("rectangle_traffic", API_V3_URL, "/traffic/status/rectangle", ["rectangle"],
                  {"level": 5, "extensions": "base", "callback": None}),
        _endpoint("circle_traffic", API_V3_URL, "/traffic/status/circle", ["location"],
                  {"radius": 1000, "level": 5, "extensions": "base", "callback": None}),
        _endpoint("road_traffic", API_V3_URL, "/traffic/status/road", ["name"],
                  {"level": 5, "extensions": "base", "callback": None},
                  required_any=[("adcode", "city")]),
        # Corrección de trayectorias
        _endpoint("grasp_road", API_V4_URL, "/grasproad/driving", ["points"]),
    )
})
