"""
Repositorio DynamoDB (boto3) para:
- escritura por lotes (BatchWriteItem) con backoff exponencial ante throttling
- borrado por lotes (para el sweep de huérfanos)
- scan de claves escritas por corridas anteriores

Política de reintentos:
- solo los errores de throughput/rate-limit se reintentan
- cualquier otro error abandona el batch de inmediato (sin espera)
- agotar los intentos también abandona el batch
En ambos casos el writer NO levanta: retorna un WriteOutcome que el driver
cuenta y reporta al final de la corrida.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from dbsync.shared.exceptions.sync import TransientIOError

KEY_ATTRIBUTE = "pagePath"
SYNC_RUN_ATTRIBUTE = "syncRunId"

THROTTLING_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "RequestLimitExceeded",
    }
)


class WriteStatus(str, Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class WriteOutcome:
    """
    Resultado de un batch: estado final, intentos usados, items del batch
    (`items`) y cuántos quedaron sin escribir al abandonarlo (`unwritten`).
    """

    status: WriteStatus
    attempts: int
    items: int
    unwritten: int = 0
    error: Optional[str] = None

    @property
    def abandoned(self) -> bool:
        return self.status in (WriteStatus.FAILED, WriteStatus.EXHAUSTED)


def is_throttling_error(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code", "")
    return code in THROTTLING_ERROR_CODES


def backoff_delays(initial_s: float, max_attempts: int) -> list[float]:
    """Esperas entre intentos: initial, 2*initial, 4*initial... (max_attempts - 1 esperas)."""
    return [initial_s * (2**i) for i in range(max(max_attempts - 1, 0))]


def dedupe_by_key(rows: Iterable[dict[str, Any]], key_attribute: str = KEY_ATTRIBUTE) -> list[dict[str, Any]]:
    """
    DynamoDB rechaza claves duplicadas en un mismo BatchWriteItem.
    Se conserva la última fila de cada clave (last-writer-wins).
    """
    by_key: dict[Any, dict[str, Any]] = {}
    for row in rows:
        key = row[key_attribute]
        by_key.pop(key, None)
        by_key[key] = row
    return list(by_key.values())


class DynamoBatchWriter:
    def __init__(
        self,
        *,
        client: Any = None,
        region: Optional[str] = None,
        initial_backoff_s: float = 1.5,
        max_attempts: int = 20,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client or boto3.client("dynamodb", region_name=region or None)
        self._initial_backoff_s = initial_backoff_s
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    @property
    def client(self) -> Any:
        return self._client

    def serialize(self, row: dict[str, Any]) -> dict[str, Any]:
        """dict Python -> formato de atributos de bajo nivel ({"S": ...}, {"L": [...]})."""
        return {name: self._serializer.serialize(value) for name, value in row.items()}

    def write(self, table_name: str, rows: list[dict[str, Any]]) -> WriteOutcome:
        """PutRequest incondicional por fila (sobrescribe sin chequeo de concurrencia)."""
        requests = [{"PutRequest": {"Item": self.serialize(row)}} for row in dedupe_by_key(rows)]
        return self._send(table_name, requests, action="escritura")

    def delete(self, table_name: str, keys: list[str]) -> WriteOutcome:
        requests = [
            {"DeleteRequest": {"Key": {KEY_ATTRIBUTE: {"S": key}}}}
            for key in dict.fromkeys(keys)
        ]
        return self._send(table_name, requests, action="borrado")

    def _send(self, table_name: str, requests: list[dict[str, Any]], *, action: str) -> WriteOutcome:
        total = len(requests)
        if total == 0:
            return WriteOutcome(status=WriteStatus.SKIPPED, attempts=0, items=0)

        logger.info(f"Iniciando {action} de {total} items en {table_name}")
        pending = requests
        backoff = self._initial_backoff_s

        for attempt in range(1, self._max_attempts + 1):
            try:
                response = self._client.batch_write_item(RequestItems={table_name: pending})
            except ClientError as e:
                if not is_throttling_error(e):
                    logger.error(f"Error en {action} sobre {table_name}, batch abandonado: {e}")
                    return WriteOutcome(
                        status=WriteStatus.FAILED, attempts=attempt, items=total, unwritten=len(pending), error=str(e)
                    )
                logger.warning(f"Throughput excedido en {table_name}, intento {attempt}/{self._max_attempts}")
            except BotoCoreError as e:
                logger.error(f"Error en {action} sobre {table_name}, batch abandonado: {e}")
                return WriteOutcome(
                    status=WriteStatus.FAILED, attempts=attempt, items=total, unwritten=len(pending), error=str(e)
                )
            else:
                unprocessed = (response.get("UnprocessedItems") or {}).get(table_name) or []
                if not unprocessed:
                    logger.info(f"Completada {action} en {table_name} ({total} items, intentos={attempt})")
                    return WriteOutcome(status=WriteStatus.WRITTEN, attempts=attempt, items=total)
                # Throttling parcial: solo se reenvía lo que quedó sin procesar
                logger.warning(
                    f"{len(unprocessed)}/{total} items sin procesar en {table_name}, "
                    f"intento {attempt}/{self._max_attempts}"
                )
                pending = unprocessed

            if attempt < self._max_attempts:
                self._sleep(backoff)
                backoff *= 2

        logger.error(f"Reintentos agotados ({self._max_attempts}) en {action} sobre {table_name}, batch abandonado")
        return WriteOutcome(
            status=WriteStatus.EXHAUSTED,
            attempts=self._max_attempts,
            items=total,
            unwritten=len(pending),
            error="reintentos agotados por throttling",
        )

    def iter_stale_keys(
        self,
        table_name: str,
        sync_run_id: str,
        *,
        in_scope: Optional[Callable[[str], bool]] = None,
    ) -> Iterator[str]:
        """
        Claves cuyo syncRunId difiere de la corrida actual (full scan paginado).
        Las filas sin syncRunId también se consideran huérfanas.
        `in_scope` limita el resultado a las claves que la corrida pudo escribir.
        """
        params: dict[str, Any] = {
            "TableName": table_name,
            "ProjectionExpression": "#k, #r",
            "ExpressionAttributeNames": {"#k": KEY_ATTRIBUTE, "#r": SYNC_RUN_ATTRIBUTE},
        }
        while True:
            try:
                response = self._client.scan(**params)
            except (ClientError, BotoCoreError) as e:
                raise TransientIOError(f"Falló el scan de {table_name}: {e}") from e

            for item in response.get("Items") or []:
                row = {name: self._deserializer.deserialize(value) for name, value in item.items()}
                key = str(row[KEY_ATTRIBUTE])
                if row.get(SYNC_RUN_ATTRIBUTE) == sync_run_id:
                    continue
                if in_scope is None or in_scope(key):
                    yield key

            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            params["ExclusiveStartKey"] = last_key
