"""
Servicio de sincronización S3 -> DynamoDB.

Diseño (resumen):
- Lista el bucket página por página siguiendo continuation tokens
- Solo lee las keys cuyo nombre es el index document (index.json)
- Clasifica cada documento en Page / Section y lo acumula por tipo
- Cada batch lleno se escribe (y se espera) antes de seguir acumulando
- Al final se drenan los batches parciales y, opcionalmente, se barren
  las filas huérfanas de corridas anteriores

Estrategia de errores:
- DocumentParseError y errores de listado abortan la corrida
- Un fallo al leer un objeto se loguea, se cuenta y se sigue
- Los errores de escritura quedan aislados en su batch y se cuentan
"""

from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger

from dbsync.core.config import Settings, get_settings
from dbsync.shared.exceptions.sync import DocumentParseError, TransientIOError

from .batcher import BatchAccumulator
from .dynamo_repository import DynamoBatchWriter, WriteOutcome, WriteStatus
from .s3_client import S3DocumentReader
from .sync_config import TableSyncConfig, table_sync_config_from_settings
from .types import (
    ClassifiedDocument,
    RecordKind,
    build_page_row,
    build_section_row,
    classify,
    parse_document,
    path_in_prefix,
)


def new_sync_run_id() -> str:
    now = datetime.now(timezone.utc)
    return f"{now:%Y%m%dT%H%M%SZ}-{uuid.uuid4().hex[:8]}"


@dataclass
class SyncResult:
    sync_run_id: str
    objects_listed: int = 0
    keys_skipped: int = 0
    documents_fetched: int = 0
    fetch_failures: int = 0
    pages: int = 0
    sections: int = 0
    sections_skipped: int = 0
    rows_written: int = 0
    batches_written: int = 0
    batches_abandoned: int = 0
    rows_abandoned: int = 0
    orphans_deleted: int = 0
    sweep_failed: bool = False
    elapsed_s: float = 0.0

    @property
    def has_failures(self) -> bool:
        """True si hubo batches abandonados, lecturas fallidas o un sweep fallido."""
        return self.batches_abandoned > 0 or self.fetch_failures > 0 or self.sweep_failed

    def summary(self) -> dict[str, Any]:
        data = asdict(self)
        data["has_failures"] = self.has_failures
        return data


class S3ToDynamoSync:
    """
    Orquestador del pipeline para un bucket y una tabla.
    """

    def __init__(
        self,
        *,
        reader: S3DocumentReader,
        writer: DynamoBatchWriter,
    ) -> None:
        self._reader = reader
        self._writer = writer

    def run_once(
        self,
        *,
        config: TableSyncConfig,
        sync_run_id: Optional[str] = None,
    ) -> SyncResult:
        """
        Ejecuta una corrida completa. Levanta DocumentParseError o
        TransientIOError (listado) si la corrida debe abortarse.
        """
        started = time.perf_counter()
        result = SyncResult(sync_run_id=sync_run_id or new_sync_run_id())
        accumulator: BatchAccumulator[ClassifiedDocument] = BatchAccumulator(config.batch_size)

        logger.info(
            f"Sync: s3://{config.bucket}/{config.prefix} -> DynamoDB '{config.table_name}' "
            f"(run {result.sync_run_id})"
        )

        try:
            for page in self._reader.iter_pages():
                result.objects_listed += len(page.items)
                for obj in page.items:
                    if not self._reader.is_index_key(obj.key):
                        result.keys_skipped += 1
                        continue

                    item = self._load(obj.key, config=config, result=result)
                    if item is None:
                        continue

                    batch = accumulator.add(item.kind, item)
                    if batch:
                        self._flush(item.kind, batch, config=config, result=result)

                logger.info(f"Encontradas {result.pages} páginas y {result.sections} secciones")
        except DocumentParseError as e:
            logger.error(f"Documento malformado, se aborta la corrida: {e.message}")
            raise

        for kind, batch in accumulator.drain().items():
            self._flush(kind, batch, config=config, result=result)

        logger.info("Enumeración del bucket finalizada")

        if config.sweep_orphans:
            self._sweep_orphans(config=config, result=result)

        result.elapsed_s = round(time.perf_counter() - started, 2)
        log = logger.warning if result.has_failures else logger.info
        log(
            f"Sync completado en {result.elapsed_s:.2f}s: páginas={result.pages}, "
            f"secciones={result.sections}, filas={result.rows_written}, "
            f"batches abandonados={result.batches_abandoned}, lecturas fallidas={result.fetch_failures}"
        )
        return result

    def _load(
        self,
        key: str,
        *,
        config: TableSyncConfig,
        result: SyncResult,
    ) -> Optional[ClassifiedDocument]:
        try:
            raw = self._reader.fetch(key)
        except TransientIOError as e:
            result.fetch_failures += 1
            logger.error(f"No se pudo leer {key}, se omite: {e.message}")
            return None

        result.documents_fetched += 1
        item = classify(key, parse_document(key, raw), config.index_document)

        if item.kind is RecordKind.SECTION:
            result.sections += 1
        else:
            result.pages += 1
        return item

    def _flush(
        self,
        kind: RecordKind,
        batch: list[ClassifiedDocument],
        *,
        config: TableSyncConfig,
        result: SyncResult,
    ) -> None:
        if not batch:
            return

        if kind is RecordKind.SECTION:
            if not config.write_sections:
                result.sections_skipped += len(batch)
                logger.warning(f"Escritura de secciones deshabilitada: {len(batch)} secciones omitidas")
                return
            rows = [
                build_section_row(item, sync_run_id=result.sync_run_id, index_document=config.index_document)
                for item in batch
            ]
        else:
            rows = [build_page_row(item, sync_run_id=result.sync_run_id) for item in batch]

        logger.debug(f"Flush de batch {kind.value} ({len(rows)} filas)")
        self._record(self._writer.write(config.table_name, rows), result)

    def _record(self, outcome: WriteOutcome, result: SyncResult) -> None:
        if outcome.status is WriteStatus.WRITTEN:
            result.batches_written += 1
        elif outcome.abandoned:
            result.batches_abandoned += 1
            result.rows_abandoned += outcome.unwritten
        # Un batch abandonado pudo escribir parte de sus filas antes de rendirse
        result.rows_written += outcome.items - outcome.unwritten

    def _sweep_orphans(self, *, config: TableSyncConfig, result: SyncResult) -> None:
        """
        Mark-and-sweep: borra las filas que esta corrida no escribió.
        Solo corre si la corrida escribió todo lo que leyó, y con prefijo
        solo considera las filas que ese listado pudo producir.
        """
        if result.has_failures or result.sections_skipped:
            logger.warning("Sweep de huérfanos omitido: la corrida no escribió todos los documentos")
            return

        if config.prefix:
            logger.info(f"Sweep limitado a las claves bajo el prefijo {config.prefix!r}")

        def in_scope(path: str) -> bool:
            return path_in_prefix(path, config.prefix, config.index_document)

        logger.info(f"Buscando filas huérfanas en {config.table_name}...")
        try:
            stale = list(self._writer.iter_stale_keys(config.table_name, result.sync_run_id, in_scope=in_scope))
        except TransientIOError as e:
            result.sweep_failed = True
            logger.error(f"Sweep de huérfanos fallido: {e.message}")
            return

        for start in range(0, len(stale), config.batch_size):
            chunk = stale[start:start + config.batch_size]
            outcome = self._writer.delete(config.table_name, chunk)
            if outcome.abandoned:
                result.batches_abandoned += 1
                result.rows_abandoned += outcome.unwritten
            result.orphans_deleted += outcome.items - outcome.unwritten

        logger.info(f"Sweep completado. Filas huérfanas borradas: {result.orphans_deleted}")


def build_from_env(
    settings: Optional[Settings] = None,
) -> tuple[S3ToDynamoSync, TableSyncConfig]:
    """
    Constructor “oficial” del pipeline a partir de la configuración del entorno.

    Env vars requeridas:
    - RESOURCE_JSON_BUCKET
    - RESOURCE_SEARCH_TABLE
    """
    settings = settings or get_settings()
    config = table_sync_config_from_settings(settings)

    reader = S3DocumentReader(
        config.bucket,
        region=settings.AWS_REGION,
        prefix=config.prefix,
        max_keys=config.max_keys,
        index_document=config.index_document,
    )
    writer = DynamoBatchWriter(
        region=settings.AWS_REGION,
        initial_backoff_s=settings.initial_backoff_s,
        max_attempts=settings.SYNC_MAX_ATTEMPTS,
    )
    return S3ToDynamoSync(reader=reader, writer=writer), config
