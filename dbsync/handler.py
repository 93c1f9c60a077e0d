"""
Puntos de entrada del job: función reutilizable `run_sync` y handler Lambda.
"""
from __future__ import annotations

import dataclasses
import time
from typing import Any, Optional

from loguru import logger

from dbsync.core.config import Settings, get_settings
from dbsync.core.log_setup import configure_logging
from dbsync.infrastructure.external.s3_dynamo_sync.sync_service import SyncResult, build_from_env


def run_sync(
    settings: Optional[Settings] = None,
    *,
    sweep_orphans: Optional[bool] = None,
    write_sections: Optional[bool] = None,
) -> SyncResult:
    """
    Ejecuta una corrida completa. Los flags, si se pasan, tienen prioridad
    sobre la configuración del entorno.
    """
    settings = settings or get_settings()
    service, config = build_from_env(settings)

    overrides: dict[str, Any] = {}
    if sweep_orphans is not None:
        overrides["sweep_orphans"] = sweep_orphans
    if write_sections is not None:
        overrides["write_sections"] = write_sections
    if overrides:
        config = dataclasses.replace(config, **overrides)

    return service.run_once(config=config)


def handler(event: Any, context: Any) -> dict[str, Any]:
    """
    Handler Lambda. `event` y `context` se ignoran: cada invocación es una
    corrida completa.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    logger.info(f"Iniciando dbsync de {settings.RESOURCE_JSON_BUCKET} a {settings.RESOURCE_SEARCH_TABLE}")
    started = time.perf_counter()
    result = run_sync(settings)
    logger.info(f"Finalizado en {time.perf_counter() - started:.2f} s")
    return result.summary()
