"""
Excepciones de la aplicación.
"""
from dbsync.shared.exceptions.base import AppException
from dbsync.shared.exceptions.sync import (
    DocumentParseError,
    ObjectNotFoundError,
    SyncConfigError,
    TransientIOError,
)

__all__ = [
    "AppException",
    "DocumentParseError",
    "ObjectNotFoundError",
    "SyncConfigError",
    "TransientIOError",
]
