"""
CLI: crea la tabla DynamoDB destino (setup, una sola vez).

Ejecución:
  python scripts/create_table.py
  python scripts/create_table.py --table otra-tabla
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import boto3
from loguru import logger
from dotenv import load_dotenv

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

load_dotenv(_REPO_ROOT / ".env", override=False)

from dbsync.core.config import Settings
from dbsync.core.log_setup import configure_logging
from dbsync.infrastructure.external.s3_dynamo_sync.table_schema import create_table


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Crea la tabla DynamoDB destino.")
    parser.add_argument("--table", required=False, help="Nombre de la tabla (default: RESOURCE_SEARCH_TABLE)")
    args = parser.parse_args(argv)

    settings = Settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    table_name = args.table or settings.RESOURCE_SEARCH_TABLE
    if not table_name:
        logger.error("Falta el nombre de la tabla: usa --table o RESOURCE_SEARCH_TABLE")
        return 1

    client = boto3.client("dynamodb", region_name=settings.AWS_REGION or None)
    logger.info(f"Creando tabla {table_name}...")
    create_table(client, table_name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
