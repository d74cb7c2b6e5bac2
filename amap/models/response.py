from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import ServiceStatusError


class AmapResponse(BaseModel):
    """Sobre común de las respuestas JSON de AMap.

    Las APIs v3 responden con status/info/infocode; las v4 con
    errcode/errmsg/data, que se normalizan a los mismos campos. El resto de
    campos (geocodes, regeocode, pois, lives...) se conservan como extra.
    """
    model_config = ConfigDict(extra="allow")

    status: str = Field(..., description='"1" si la petición tuvo éxito')
    info: str = Field("", description="Descripción del resultado")
    infocode: str | None = Field(None, description="Código del resultado (10000 = OK)")
    count: int | None = Field(None, description="Número de resultados, si aplica")

    @model_validator(mode="before")
    @classmethod
    def normalize_v4_envelope(cls, data: Any) -> Any:
        if isinstance(data, dict) and "status" not in data and "errcode" in data:
            data = dict(data)
            errcode = data.get("errcode")
            data["status"] = "1" if str(errcode) == "0" else "0"
            data.setdefault("info", data.get("errmsg") or "")
            data.setdefault("infocode", errcode)
        return data

    @field_validator("status", "infocode", mode="before")
    @classmethod
    def coerce_str(cls, v: Any) -> Any:
        if v is None:
            return v
        return str(v)

    @field_validator("count", mode="before")
    @classmethod
    def coerce_count(cls, v: Any) -> Any:
        if v == "":
            return None
        return v

    @property
    def ok(self) -> bool:
        return self.status == "1"

    def raise_for_status(self) -> "AmapResponse":
        """Lanza ServiceStatusError si el servicio devolvió un error.

        Returns:
            AmapResponse: La propia respuesta, para encadenar llamadas
        """
        if not self.ok:
            raise ServiceStatusError(self.info or "error desconocido", self.infocode)
        return self

    def __getitem__(self, key: str) -> Any:
        """Acceso tipo diccionario a campos del modelo y campos extra."""
        if key in self.__class__.model_fields:
            return getattr(self, key)
        extra = self.model_extra or {}
        if key in extra:
            return extra[key]
        raise KeyError(key)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default
