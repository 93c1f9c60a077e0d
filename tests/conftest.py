"""
Configuración de fixtures para pytest.

Clientes boto3 falsos (S3 y DynamoDB) en memoria, para testear el pipeline
sin red ni credenciales.
"""
from __future__ import annotations

import copy
from collections import defaultdict
from typing import Any, Callable, Optional, Union

import pytest
from botocore.exceptions import ClientError


def make_client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class _FakeBody:
    def __init__(self, data: bytes) -> None:
        self._data = data

    def read(self) -> bytes:
        return self._data


class FakeS3Client:
    """
    Bucket en memoria. El continuation token es el offset como string
    (opaco para el lector).
    """

    def __init__(self, objects: dict[str, Union[str, bytes, Exception]]) -> None:
        self.objects = dict(objects)
        self.list_calls: list[dict[str, Any]] = []
        self.get_calls: list[str] = []

    def list_objects_v2(self, **params: Any) -> dict[str, Any]:
        self.list_calls.append(params)
        prefix = params.get("Prefix", "")
        keys = [k for k in self.objects if k.startswith(prefix)]
        start = int(params.get("ContinuationToken") or 0)
        max_keys = params["MaxKeys"]
        chunk = keys[start:start + max_keys]

        response: dict[str, Any] = {"KeyCount": len(chunk), "IsTruncated": start + max_keys < len(keys)}
        if chunk:
            response["Contents"] = [{"Key": k, "Size": 10} for k in chunk]
        if start + max_keys < len(keys):
            response["NextContinuationToken"] = str(start + max_keys)
        return response

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self.get_calls.append(Key)
        if Key not in self.objects:
            raise make_client_error("NoSuchKey", "GetObject")
        value = self.objects[Key]
        if isinstance(value, Exception):
            raise value
        data = value.encode("utf-8") if isinstance(value, str) else value
        return {"Body": _FakeBody(data)}


class FakeDynamoClient:
    """
    Tabla en memoria. `script` define la respuesta de cada llamada a
    batch_write_item, en orden:
    - None: se procesan todos los items
    - Exception: se levanta
    - int N: los primeros N requests quedan en UnprocessedItems
    """

    def __init__(self, script: Optional[list[Any]] = None, scan_page_size: int = 2) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.calls: list[dict[str, Any]] = []
        self.scan_calls: list[dict[str, Any]] = []
        self.script = list(script or [])
        self.scan_page_size = scan_page_size
        self.created: list[dict[str, Any]] = []

    def batch_write_item(self, RequestItems: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(copy.deepcopy(RequestItems))
        step = self.script.pop(0) if self.script else None
        if isinstance(step, Exception):
            raise step

        unprocessed: dict[str, Any] = {}
        for table, requests in RequestItems.items():
            held = requests[:step] if isinstance(step, int) else []
            for req in requests[len(held):]:
                if "PutRequest" in req:
                    item = req["PutRequest"]["Item"]
                    self.tables[table][item["pagePath"]["S"]] = item
                else:
                    self.tables[table].pop(req["DeleteRequest"]["Key"]["pagePath"]["S"], None)
            if held:
                unprocessed[table] = held
        return {"UnprocessedItems": unprocessed}

    def scan(self, **params: Any) -> dict[str, Any]:
        self.scan_calls.append(params)
        items = list(self.tables[params["TableName"]].values())
        start = 0
        if "ExclusiveStartKey" in params:
            start = int(params["ExclusiveStartKey"]["offset"]["N"])
        chunk = items[start:start + self.scan_page_size]
        projected = [
            {name: value for name, value in item.items() if name in ("pagePath", "syncRunId")}
            for item in chunk
        ]
        response: dict[str, Any] = {"Items": projected, "Count": len(projected)}
        if start + self.scan_page_size < len(items):
            response["LastEvaluatedKey"] = {"offset": {"N": str(start + self.scan_page_size)}}
        return response

    def create_table(self, **params: Any) -> dict[str, Any]:
        self.created.append(params)
        return {"TableDescription": {"TableName": params["TableName"], "TableStatus": "CREATING"}}

    def put_raw(self, table: str, path: str, sync_run_id: Optional[str] = None) -> None:
        item: dict[str, Any] = {"pagePath": {"S": path}}
        if sync_run_id is not None:
            item["syncRunId"] = {"S": sync_run_id}
        self.tables[table][path] = item


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    return make_client_error


@pytest.fixture
def sleeps() -> list[float]:
    """Registra las esperas del writer en lugar de dormir."""
    return []


@pytest.fixture
def make_s3() -> type[FakeS3Client]:
    return FakeS3Client


@pytest.fixture
def make_dynamo() -> type[FakeDynamoClient]:
    return FakeDynamoClient
