"""
Configuración del cliente AMap: credenciales y opciones de transporte.
"""

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import ConfigurationError

__all__ = ["TransportOptions", "ClientConfig"]

_TRUE_VALUES = ("1", "true", "yes", "on")


class TransportOptions(BaseModel):
    """Opciones que se pasan al transporte HTTP en cada petición."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout: float = Field(5, gt=0, description="Timeout en segundos")
    proxy: str | None = Field(None, description="URL del proxy HTTP(S)")
    headers: dict[str, str] = Field(default_factory=dict, description="Cabeceras adicionales")
    verify_ssl: bool = Field(True, description="Verificar certificados SSL")


class ClientConfig(BaseModel):
    """Configuración inmutable del cliente.

    La validación se hace al construir: sin key, o con firma activada y sin
    private_key, se lanza ConfigurationError y no se puede hacer ninguna
    petición.

    Example:
        config = ClientConfig(key="mi-key", sign=True, private_key="secreto")
        config = ClientConfig.from_env()
    """
    model_config = ConfigDict(frozen=True)

    key: str | None = Field(None, description="Clave de la API web de AMap")
    sign: bool = Field(False, description="Firmar las peticiones con sig")
    private_key: str | None = Field(None, description="Clave privada para la firma")
    transport: TransportOptions = Field(default_factory=TransportOptions)

    @model_validator(mode="after")
    def validate_credentials(self) -> "ClientConfig":
        if not self.key:
            raise ConfigurationError('La propiedad "key" es obligatoria')
        if self.sign and not self.private_key:
            raise ConfigurationError(
                'La propiedad "private_key" es obligatoria cuando la firma está activada'
            )
        return self

    @classmethod
    def create(cls, **values: Any) -> "ClientConfig":
        """Construye la configuración convirtiendo errores de pydantic en ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuración inválida: {e.error_count()} error(es)",
                details={"errors": [err["loc"] for err in e.errors()]},
            ) from e

    @classmethod
    def from_env(cls, prefix: str = "AMAP_") -> "ClientConfig":
        """Carga la configuración desde variables de entorno.

        Variables: {prefix}KEY, {prefix}SIGN, {prefix}PRIVATE_KEY,
        {prefix}TIMEOUT y {prefix}PROXY.
        """
        transport: dict[str, Any] = {}
        timeout = os.getenv(f"{prefix}TIMEOUT")
        if timeout:
            transport["timeout"] = timeout
        proxy = os.getenv(f"{prefix}PROXY")
        if proxy:
            transport["proxy"] = proxy

        return cls.create(
            key=os.getenv(f"{prefix}KEY", ""),
            sign=os.getenv(f"{prefix}SIGN", "").strip().lower() in _TRUE_VALUES,
            private_key=os.getenv(f"{prefix}PRIVATE_KEY", ""),
            transport=transport,
        )

    def with_transport(self, **options: Any) -> "ClientConfig":
        """Devuelve una copia con las opciones de transporte actualizadas.

        Raises:
            ConfigurationError: Si alguna opción es desconocida o inválida
        """
        values = self.transport.model_dump()
        values.update(options)
        try:
            transport = TransportOptions(**values)
        except ValidationError as e:
            raise ConfigurationError(
                "Opciones de transporte inválidas",
                details={"errors": [err["loc"] for err in e.errors()]},
            ) from e
        return self.model_copy(update={"transport": transport})
