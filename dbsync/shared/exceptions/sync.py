"""
Excepciones del pipeline S3 -> DynamoDB.

Solo la configuración inválida, los errores de listado y los documentos
malformados terminan la corrida. Los errores de escritura nunca salen del
writer: se reportan como WriteOutcome.
"""
from typing import Optional

from dbsync.shared.exceptions.base import AppException


class SyncConfigError(AppException):
    """Configuración faltante o inválida (se detecta antes de iniciar el pipeline)."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else None
        super().__init__(message=message, error_code="CONFIG_ERROR", details=details)


class TransientIOError(AppException):
    """Fallo de red/servicio al listar u obtener un objeto de S3."""

    def __init__(self, message: str, key: Optional[str] = None):
        details = {"key": key} if key else None
        super().__init__(message=message, error_code="TRANSIENT_IO", details=details)
        self.key = key


class ObjectNotFoundError(TransientIOError):
    """El objeto listado ya no existe al momento de leerlo."""

    def __init__(self, key: str):
        super().__init__(message=f"Objeto '{key}' no encontrado en S3", key=key)
        self.error_code = "OBJECT_NOT_FOUND"


class DocumentParseError(AppException):
    """
    Un index.json malformado.

    Es fatal para toda la corrida: indica un bug aguas arriba en la
    generación del contenido.
    """

    def __init__(self, key: str, reason: str):
        super().__init__(
            message=f"No se pudo parsear '{key}': {reason}",
            error_code="PARSE_ERROR",
            details={"key": key, "reason": reason},
        )
        self.key = key
