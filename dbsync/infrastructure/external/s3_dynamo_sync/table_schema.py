"""
Esquema de la tabla destino y su creación (setup, fuera del pipeline).

Solo se declara la clave: DynamoDB no necesita definir el resto de los
atributos. Billing on-demand para no chocar con límites de throughput
provisionado.
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import ClientError
from loguru import logger

from .dynamo_repository import KEY_ATTRIBUTE


def page_table_params(table_name: str) -> dict[str, Any]:
    return {
        "TableName": table_name,
        "BillingMode": "PAY_PER_REQUEST",
        "AttributeDefinitions": [
            {"AttributeName": KEY_ATTRIBUTE, "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": KEY_ATTRIBUTE, "KeyType": "HASH"},
        ],
    }


def create_table(client: Any, table_name: str) -> bool:
    """
    Crea la tabla. Retorna False si ya existía.
    """
    try:
        response = client.create_table(**page_table_params(table_name))
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == "ResourceInUseException":
            logger.warning(f"La tabla {table_name} ya existe, no se crea")
            return False
        raise

    status = response.get("TableDescription", {}).get("TableStatus")
    logger.info(f"Tabla {table_name} creada (status={status})")
    return True
