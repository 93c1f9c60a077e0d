"""
CLI: S3 (index.json) -> DynamoDB (one-way sync).

Uso recomendado:
  - Ejecutar como job (cron / Lambda programada).

Variables de entorno requeridas:
  - RESOURCE_JSON_BUCKET
  - RESOURCE_SEARCH_TABLE
  - AWS_REGION (o configuración por defecto de AWS)

Ejecución:
  python scripts/s3_to_dynamo_sync.py
  python scripts/s3_to_dynamo_sync.py --sweep-orphans
  python scripts/s3_to_dynamo_sync.py --no-sections --verbose

Códigos de salida:
  0 corrida limpia, 2 batches abandonados o lecturas fallidas, 1 error fatal.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin instalar el paquete.
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

load_dotenv(_REPO_ROOT / ".env", override=False)

from dbsync.core.config import get_settings
from dbsync.core.log_setup import configure_logging
from dbsync.handler import run_sync
from dbsync.shared.exceptions.base import AppException

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sincroniza index.json de S3 hacia DynamoDB.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Mostrar mensajes de debug")
    parser.add_argument(
        "--sweep-orphans",
        action="store_true",
        default=None,
        help="Borrar al final las filas que esta corrida no escribió (mark-and-sweep).",
    )
    parser.add_argument(
        "--no-sections",
        dest="write_sections",
        action="store_false",
        default=None,
        help="No escribir filas de secciones (se cuentan como omitidas).",
    )
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except AppException as e:
        logger.error(e.message)
        return EXIT_FATAL

    configure_logging("DEBUG" if args.verbose else settings.LOG_LEVEL, settings.LOG_FILE)

    logger.info(f"Iniciando dbsync de {settings.RESOURCE_JSON_BUCKET} a {settings.RESOURCE_SEARCH_TABLE}")
    started = time.perf_counter()
    try:
        result = run_sync(settings, sweep_orphans=args.sweep_orphans, write_sections=args.write_sections)
    except AppException as e:
        logger.error(f"Sync abortado [{e.error_code}]: {e.message}")
        return EXIT_FATAL
    logger.info(f"Finalizado en {time.perf_counter() - started:.2f} s")

    if result.has_failures:
        logger.warning(
            f"Sync con fallos: batches abandonados={result.batches_abandoned}, "
            f"lecturas fallidas={result.fetch_failures}, sweep fallido={result.sweep_failed}"
        )
        return EXIT_PARTIAL
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
