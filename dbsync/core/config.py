"""
Configuracion central del job de sincronizacion.
Lee variables de entorno (y .env si existe) y las valida antes de arrancar
el pipeline.

La configuracion se construye una sola vez al inicio (ver `get_settings`) y se
pasa explicitamente al lector de S3 y al writer de DynamoDB.
"""
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings

from dbsync.shared.exceptions.sync import SyncConfigError

# Limite de items por llamada BatchWriteItem en DynamoDB
DYNAMO_BATCH_WRITE_LIMIT = 25


class Settings(BaseSettings):
    """
    Configuracion del job.

    - RESOURCE_JSON_BUCKET: bucket S3 con los index.json generados
    - RESOURCE_SEARCH_TABLE: tabla DynamoDB destino
    - AWS_REGION: region para ambos clientes (credenciales via cadena por defecto de boto3)
    """

    # Origen / destino
    RESOURCE_JSON_BUCKET: str = Field(default="")
    RESOURCE_SEARCH_TABLE: str = Field(default="")
    AWS_REGION: str = Field(default="")

    # Enumeracion
    SYNC_PREFIX: str = Field(default="")
    SYNC_MAX_KEYS: int = Field(default=50)
    SYNC_INDEX_DOCUMENT: str = Field(default="index.json")

    # Escritura
    SYNC_BATCH_SIZE: int = Field(default=20)
    SYNC_INITIAL_BACKOFF_MS: int = Field(default=1500)
    SYNC_MAX_ATTEMPTS: int = Field(default=20)
    SYNC_WRITE_SECTIONS: bool = Field(default=True)
    SYNC_SWEEP_ORPHANS: bool = Field(default=False)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="")

    @computed_field
    @property
    def initial_backoff_s(self) -> float:
        """Backoff inicial en segundos (la configuracion se expresa en ms)."""
        return self.SYNC_INITIAL_BACKOFF_MS / 1000.0

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


def validate_settings(settings: Settings) -> Settings:
    """
    Valida la configuracion critica. Levanta SyncConfigError ante el primer
    problema encontrado.
    """
    if not settings.RESOURCE_JSON_BUCKET:
        raise SyncConfigError(
            "Falta variable de entorno obligatoria: RESOURCE_JSON_BUCKET",
            setting="RESOURCE_JSON_BUCKET",
        )
    if not settings.RESOURCE_SEARCH_TABLE:
        raise SyncConfigError(
            "Falta variable de entorno obligatoria: RESOURCE_SEARCH_TABLE",
            setting="RESOURCE_SEARCH_TABLE",
        )
    if not 1 <= settings.SYNC_BATCH_SIZE <= DYNAMO_BATCH_WRITE_LIMIT:
        raise SyncConfigError(
            f"SYNC_BATCH_SIZE debe estar entre 1 y {DYNAMO_BATCH_WRITE_LIMIT} "
            f"(valor actual: {settings.SYNC_BATCH_SIZE})",
            setting="SYNC_BATCH_SIZE",
        )
    if not 1 <= settings.SYNC_MAX_KEYS <= 1000:
        raise SyncConfigError(
            f"SYNC_MAX_KEYS debe estar entre 1 y 1000 (valor actual: {settings.SYNC_MAX_KEYS})",
            setting="SYNC_MAX_KEYS",
        )
    if settings.SYNC_MAX_ATTEMPTS < 1:
        raise SyncConfigError("SYNC_MAX_ATTEMPTS debe ser >= 1", setting="SYNC_MAX_ATTEMPTS")
    if settings.SYNC_INITIAL_BACKOFF_MS < 0:
        raise SyncConfigError("SYNC_INITIAL_BACKOFF_MS no puede ser negativo", setting="SYNC_INITIAL_BACKOFF_MS")
    if not settings.SYNC_INDEX_DOCUMENT or "/" in settings.SYNC_INDEX_DOCUMENT:
        raise SyncConfigError(
            "SYNC_INDEX_DOCUMENT debe ser un nombre de archivo (sin '/')",
            setting="SYNC_INDEX_DOCUMENT",
        )
    return settings


def get_settings() -> Settings:
    """Construye y valida la configuracion desde el entorno."""
    return validate_settings(Settings())
