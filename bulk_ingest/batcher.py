"""Group records into bounded, ordered batches."""
from dataclasses import dataclass
from typing import Any, Callable

from bulk_ingest.errors import StartupError


@dataclass(frozen=True)
class Batch:
    """A sealed batch; sequence starts at 1 and follows seal order."""

    sequence: int
    records: tuple

    def __len__(self) -> int:
        return len(self.records)


class Batcher:
    """Accumulate records and hand each full batch to on_seal.

    Batches are sealed in offer order and keep the offer order of their
    records. An exception from on_seal propagates out of offer/flush; the
    sealed batch is not re-offered.
    """

    def __init__(self, max_bulk: int, on_seal: Callable[[Batch], None]) -> None:
        if max_bulk < 1:
            raise StartupError(f"max_bulk must be a positive integer, got {max_bulk}")
        self._max_bulk = max_bulk
        self._on_seal = on_seal
        self._open: list[Any] = []
        self._sealed = 0

    @property
    def pending(self) -> int:
        return len(self._open)

    @property
    def sealed_count(self) -> int:
        return self._sealed

    def offer(self, record: Any) -> None:
        self._open.append(record)
        if len(self._open) >= self._max_bulk:
            self._seal()

    def flush(self) -> None:
        """Seal the open batch even if short; no-op when it is empty."""
        if self._open:
            self._seal()

    def _seal(self) -> None:
        self._sealed += 1
        batch = Batch(sequence=self._sealed, records=tuple(self._open))
        self._open = []
        self._on_seal(batch)
