"""
Acumulador de batches por tipo de registro.

Un batch se entrega exactamente al llegar a capacidad, o al final de la
enumeración vía `drain()`. Nunca supera la capacidad.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from .types import RecordKind

T = TypeVar("T")


class BatchAccumulator(Generic[T]):
    def __init__(self, capacity: int = 20) -> None:
        if capacity < 1:
            raise ValueError("capacity debe ser >= 1")
        self._capacity = capacity
        self._buffers: dict[RecordKind, list[T]] = {kind: [] for kind in RecordKind}

    @property
    def capacity(self) -> int:
        return self._capacity

    def pending(self, kind: RecordKind) -> int:
        return len(self._buffers[kind])

    def add(self, kind: RecordKind, item: T) -> Optional[list[T]]:
        """
        Agrega un item. Si el buffer llega a capacidad, retorna el batch
        completo y deja un buffer vacío para ese tipo.
        """
        buffer = self._buffers[kind]
        buffer.append(item)
        if len(buffer) >= self._capacity:
            self._buffers[kind] = []
            return buffer
        return None

    def drain(self) -> dict[RecordKind, list[T]]:
        """Retorna lo que queda de cada tipo (incluye buffers vacíos) y resetea."""
        remaining = self._buffers
        self._buffers = {kind: [] for kind in RecordKind}
        return remaining
