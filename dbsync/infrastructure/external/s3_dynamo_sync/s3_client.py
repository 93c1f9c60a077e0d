"""
Lector de documentos en S3 (boto3).

Requisitos cubiertos:
- paginación por continuation token (ListObjectsV2)
- filtro por nombre de index document antes de leer contenido
- errores de S3 traducidos a TransientIOError / ObjectNotFoundError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from dbsync.shared.exceptions.sync import DocumentParseError, ObjectNotFoundError, TransientIOError

from .types import DEFAULT_INDEX_DOCUMENT, is_index_key

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass(frozen=True)
class ListedObject:
    key: str
    size: int = 0


@dataclass(frozen=True)
class ListedPage:
    """Una página de ListObjectsV2. next_token es None en la última página."""

    items: list[ListedObject] = field(default_factory=list)
    next_token: Optional[str] = None


class S3DocumentReader:
    """
    Lista y lee documentos JSON de un bucket.

    No reintenta: los errores de listado abortan la corrida y los de lectura
    los maneja el driver por item.
    """

    def __init__(
        self,
        bucket: str,
        *,
        client: Any = None,
        region: Optional[str] = None,
        prefix: str = "",
        max_keys: int = 50,
        index_document: str = DEFAULT_INDEX_DOCUMENT,
    ) -> None:
        self._bucket = bucket
        self._client = client or boto3.client("s3", region_name=region or None)
        self._prefix = prefix
        self._max_keys = max_keys
        self._index_document = index_document

    @property
    def bucket(self) -> str:
        return self._bucket

    def is_index_key(self, key: str) -> bool:
        return is_index_key(key, self._index_document)

    def list_page(self, continuation_token: Optional[str] = None) -> ListedPage:
        """Una llamada ListObjectsV2. El token se pasa tal cual (es opaco)."""
        params: dict[str, Any] = {"Bucket": self._bucket, "MaxKeys": self._max_keys}
        if self._prefix:
            params["Prefix"] = self._prefix
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            response = self._client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as e:
            raise TransientIOError(f"Falló el listado de s3://{self._bucket}: {e}") from e

        items = [
            ListedObject(key=obj["Key"], size=int(obj.get("Size") or 0))
            for obj in response.get("Contents") or []
        ]
        return ListedPage(items=items, next_token=response.get("NextContinuationToken") or None)

    def iter_pages(self) -> Iterator[ListedPage]:
        """Recorre todas las páginas siguiendo los continuation tokens."""
        token: Optional[str] = None
        while True:
            page = self.list_page(token)
            yield page
            token = page.next_token
            if not token:
                break

    def fetch(self, key: str) -> Optional[str]:
        """Contenido del objeto como texto UTF-8 (None si no trae body)."""
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            body = response.get("Body")
            if body is None:
                return None
            return body.read().decode("utf-8")
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(key) from e
            raise TransientIOError(f"Falló la lectura de s3://{self._bucket}/{key}: {e}", key=key) from e
        except BotoCoreError as e:
            logger.debug(f"Error leyendo {key}: {e!r}")
            raise TransientIOError(f"Falló la lectura de s3://{self._bucket}/{key}: {e}", key=key) from e
        except UnicodeDecodeError as e:
            raise DocumentParseError(key, f"contenido no es UTF-8: {e}") from e
