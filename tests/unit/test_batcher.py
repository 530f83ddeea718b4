"""Unit tests for the batcher."""

from __future__ import annotations

import pytest

from bulk_ingest.batcher import Batch, Batcher
from bulk_ingest.errors import StartupError


def _collecting_batcher(max_bulk: int) -> tuple[Batcher, list[Batch]]:
    sealed: list[Batch] = []
    return Batcher(max_bulk, sealed.append), sealed


def test_batcher_seals_full_batches_then_flushes_remainder() -> None:
    """250 records at 100 per batch should seal 100, 100 and then 50 on flush."""
    batcher, sealed = _collecting_batcher(100)

    for index in range(250):
        batcher.offer({"n": index})
    assert [len(batch) for batch in sealed] == [100, 100]

    batcher.flush()

    assert [len(batch) for batch in sealed] == [100, 100, 50]
    assert [batch.sequence for batch in sealed] == [1, 2, 3]


def test_batcher_keeps_offer_order() -> None:
    """Records should appear across batches exactly once and in offer order."""
    batcher, sealed = _collecting_batcher(3)

    for index in range(10):
        batcher.offer(index)
    batcher.flush()

    assert [record for batch in sealed for record in batch.records] == list(range(10))


def test_batcher_flush_is_noop_on_exact_multiple() -> None:
    """When the count divides evenly, flush should not seal an empty batch."""
    batcher, sealed = _collecting_batcher(5)

    for index in range(10):
        batcher.offer(index)
    batcher.flush()
    batcher.flush()

    assert [len(batch) for batch in sealed] == [5, 5]
    assert batcher.pending == 0
    assert batcher.sealed_count == 2


def test_batcher_flush_without_records_seals_nothing() -> None:
    """Flushing an empty batcher should not call on_seal."""
    batcher, sealed = _collecting_batcher(100)

    batcher.flush()

    assert sealed == []


def test_batcher_propagates_on_seal_errors() -> None:
    """An error raised while handing off a batch should reach the caller of offer."""

    def refuse(batch: Batch) -> None:
        raise RuntimeError(f"refused {batch.sequence}")

    batcher = Batcher(2, refuse)
    batcher.offer(1)

    with pytest.raises(RuntimeError, match="refused 1"):
        batcher.offer(2)

    assert batcher.pending == 0


def test_batcher_rejects_non_positive_capacity() -> None:
    """A zero-sized batch is a configuration error."""
    with pytest.raises(StartupError):
        Batcher(0, lambda batch: None)
