from __future__ import annotations

import pytest

from dbsync.infrastructure.external.s3_dynamo_sync.batcher import BatchAccumulator
from dbsync.infrastructure.external.s3_dynamo_sync.types import RecordKind


def test_returns_batch_exactly_at_capacity() -> None:
    acc = BatchAccumulator(capacity=20)

    for i in range(19):
        assert acc.add(RecordKind.PAGE, i) is None
    batch = acc.add(RecordKind.PAGE, 19)

    assert batch == list(range(20))
    assert acc.pending(RecordKind.PAGE) == 0


def test_never_exceeds_capacity() -> None:
    acc = BatchAccumulator(capacity=3)
    batches = [b for i in range(10) if (b := acc.add(RecordKind.PAGE, i))]

    assert batches == [[0, 1, 2], [3, 4, 5], [6, 7, 8]]
    assert all(len(b) <= 3 for b in batches)
    assert acc.pending(RecordKind.PAGE) == 1


def test_kinds_are_buffered_independently() -> None:
    acc = BatchAccumulator(capacity=2)

    assert acc.add(RecordKind.PAGE, "p1") is None
    assert acc.add(RecordKind.SECTION, "s1") is None
    assert acc.add(RecordKind.PAGE, "p2") == ["p1", "p2"]
    assert acc.pending(RecordKind.SECTION) == 1


def test_drain_returns_partial_and_empty_buffers() -> None:
    acc = BatchAccumulator(capacity=5)
    acc.add(RecordKind.PAGE, "p1")

    remaining = acc.drain()

    assert remaining == {RecordKind.PAGE: ["p1"], RecordKind.SECTION: []}
    assert acc.pending(RecordKind.PAGE) == 0
    assert acc.drain() == {RecordKind.PAGE: [], RecordKind.SECTION: []}


def test_returned_batch_is_not_mutated_by_later_adds() -> None:
    acc = BatchAccumulator(capacity=1)
    batch = acc.add(RecordKind.PAGE, "a")
    acc.add(RecordKind.PAGE, "b")
    assert batch == ["a"]


def test_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        BatchAccumulator(capacity=0)
