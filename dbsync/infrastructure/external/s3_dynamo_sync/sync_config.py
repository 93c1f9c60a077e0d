"""
Configuración del sync (bucket S3 -> tabla DynamoDB).

Este módulo no realiza I/O: solo define configuración.
"""

from __future__ import annotations

from dataclasses import dataclass

from dbsync.core.config import Settings

from .types import DEFAULT_INDEX_DOCUMENT


@dataclass(frozen=True)
class TableSyncConfig:
    """
    Config de una corrida bucket -> tabla.

    NOTA sobre secciones:
    - write_sections=False no descarta en silencio: las secciones se cuentan
      en SyncResult.sections_skipped y se loguean.
    """

    bucket: str
    table_name: str
    prefix: str = ""
    max_keys: int = 50
    index_document: str = DEFAULT_INDEX_DOCUMENT
    batch_size: int = 20
    write_sections: bool = True
    sweep_orphans: bool = False


def table_sync_config_from_settings(settings: Settings) -> TableSyncConfig:
    return TableSyncConfig(
        bucket=settings.RESOURCE_JSON_BUCKET,
        table_name=settings.RESOURCE_SEARCH_TABLE,
        prefix=settings.SYNC_PREFIX,
        max_keys=settings.SYNC_MAX_KEYS,
        index_document=settings.SYNC_INDEX_DOCUMENT,
        batch_size=settings.SYNC_BATCH_SIZE,
        write_sections=settings.SYNC_WRITE_SECTIONS,
        sweep_orphans=settings.SYNC_SWEEP_ORPHANS,
    )
