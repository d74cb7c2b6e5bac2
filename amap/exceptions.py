"""
Jerarquía de excepciones personalizada para el cliente AMap.

Todas las excepciones del cliente heredan de AmapError, permitiendo
capturar todos los errores de la librería con un solo except.
"""

from typing import Optional, Dict, Any

__all__ = [
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


class AmapError(Exception):
    """Clase base para todas las excepciones del cliente AMap.

    Attributes:
        message: Mensaje de error principal
        details: Diccionario opcional con contexto adicional del error
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Inicializa la excepción con mensaje y detalles opcionales.

        Args:
            message: Mensaje de error descriptivo
            details: Diccionario con información adicional del contexto
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Formatea el mensaje de error con detalles si están disponibles."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        if self.details:
            return f"{class_name}(message={self.message!r}, details={self.details!r})"
        return f"{class_name}(message={self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Convierte la excepción a diccionario para serialización JSON.

        Returns:
            dict: Diccionario con type, message y details de la excepción
        """
        result = {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details.copy(),
        }

        if getattr(self, "url", None):
            result["url"] = self.url
        if getattr(self, "status_code", None) is not None:
            result["status_code"] = self.status_code
        if getattr(self, "response_text", None):
            result["response_text"] = self.response_text[:200]

        return result


class ConfigurationError(AmapError):
    """Error de configuración del cliente.

    Se lanza al construir el cliente cuando:
    - No se ha indicado la clave de la API (key)
    - La firma está activada pero falta la clave privada (private_key)

    Example:
        raise ConfigurationError('La propiedad "key" es obligatoria')
    """
    pass


class InvalidParameterError(AmapError):
    """Parámetro de petición inválido.

    Se lanza antes de cualquier actividad de red cuando:
    - Falta un parámetro obligatorio o está vacío
    - Un parámetro enumerado tiene un valor fuera de su enumeración
    - El formato de respuesta no es json ni xml
    - La URL del endpoint está vacía

    Example:
        raise InvalidParameterError(
            "Valor de extensions inválido (base/all): invalidtype",
            details={"param": "extensions", "value": "invalidtype"}
        )
    """
    pass


# Alias con el nombre corto de la taxonomía de errores
InvalidParameter = InvalidParameterError


class RequestFailedError(AmapError):
    """Clase base para fallos de red o de transporte HTTP.

    Envuelve el mensaje original del transporte y, si existe, el código de
    estado HTTP. La excepción original queda encadenada en __cause__.

    Attributes:
        message: Mensaje de error
        details: Contexto adicional
        url: URL que causó el error (si está disponible)
        status_code: Código HTTP o None si no hubo respuesta
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code
        if url:
            self.details["url"] = url
        if status_code is not None:
            self.details["status_code"] = status_code


class RequestConnectionError(RequestFailedError):
    """No se ha podido establecer conexión con el servicio (DNS, red, proxy)."""
    pass


class RequestTimeoutError(RequestFailedError):
    """La petición excedió el timeout configurado en el transporte."""
    pass


class RequestHTTPError(RequestFailedError):
    """El servicio respondió con un código HTTP que no es 2xx.

    Attributes:
        status_code: Código de estado HTTP
        response_text: Texto de la respuesta del servidor
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(message, details, url, status_code)
        self.response_text = response_text
        if response_text:
            self.details["response_text"] = response_text[:200]  # Limitar longitud


class DecodeError(AmapError):
    """El cuerpo de la respuesta no es JSON válido cuando se pidió output=json.

    Attributes:
        url: URL de la petición
        response_text: Cuerpo recibido
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.url = url
        self.response_text = response_text
        if url:
            self.details["url"] = url
        if response_text:
            self.details["response_text"] = response_text[:200]


class ServiceStatusError(AmapError):
    """El servicio respondió correctamente pero con status distinto de "1".

    Solo lo lanza AmapResponse.raise_for_status(); el cliente nunca
    interpreta el contenido de las respuestas por su cuenta.

    Attributes:
        info: Descripción del error devuelta por el servicio
        infocode: Código de error del servicio
    """

    def __init__(self, info: str, infocode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Error del servicio AMap: {info}", details)
        self.info = info
        self.infocode = infocode
        if infocode:
            self.details["infocode"] = infocode
