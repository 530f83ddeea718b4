"""Drive one ingest run: count, stream/sanitize/batch/submit, drain.

The reader thread does all decoding and batching; bulk writes run on a pool
of ``settings.concurrency`` workers. Once that many writes are outstanding
the reader waits for one to finish before submitting the next batch, so a
slow store slows the reader instead of piling up batches in memory.
"""
import enum
import logging
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from bulk_ingest.batcher import Batch, Batcher
from bulk_ingest.config import IngestSettings
from bulk_ingest.errors import FatalSubmissionError, IngestError, RecordDecodeError
from bulk_ingest.line_source import count_lines, decode_line, iter_lines
from bulk_ingest.logging_config import get_logger
from bulk_ingest.progress import ProgressReporter
from bulk_ingest.sanitizer import sanitize
from bulk_ingest.submitter import BulkSubmitter, SubmissionOutcome, SubmissionResult


class RunState(enum.Enum):
    COUNTING = "counting"
    STREAMING = "streaming"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS = {
    None: {RunState.COUNTING},
    RunState.COUNTING: {RunState.STREAMING, RunState.FAILED},
    RunState.STREAMING: {RunState.DRAINING, RunState.FAILED},
    RunState.DRAINING: {RunState.DONE, RunState.FAILED},
    RunState.DONE: set(),
    RunState.FAILED: set(),
}


@dataclass(frozen=True)
class RunSummary:
    """Counters for a completed run."""

    total_lines: int
    lines_read: int
    lines_skipped: int
    records_submitted: int
    batches_submitted: int
    batches_failed: int
    documents_rejected: int


class PipelineDriver:
    """Single-use runner for one source file against one store client."""

    def __init__(
        self,
        path: Path,
        client: Any,
        settings: IngestSettings,
        logger: Optional[logging.Logger] = None,
        progress_factory: Callable[[int], Any] = ProgressReporter,
    ) -> None:
        self._path = Path(path)
        self._client = client
        self._settings = settings
        self._logger = logger or get_logger()
        self._progress_factory = progress_factory
        self._state: Optional[RunState] = None
        self._submitter: Optional[BulkSubmitter] = None
        self._outstanding: set = set()
        self._lines_read = 0
        self._lines_skipped = 0
        self._records_submitted = 0
        self._batches_submitted = 0
        self._batches_failed = 0
        self._documents_rejected = 0

    @property
    def state(self) -> Optional[RunState]:
        return self._state

    def run(self) -> RunSummary:
        """Ingest the whole file and return its summary.

        Raises:
            FileAccessError: If the source cannot be read.
            RecordDecodeError: On an undecodable line, unless skip_malformed is set.
            FatalSubmissionError: If the store becomes unreachable.
        """
        self._transition(RunState.COUNTING)
        if self._settings.max_bulk % 2:
            self._logger.warning(
                "max bulk %d is odd: a batch may split an action line from its document",
                self._settings.max_bulk,
            )
        try:
            total = count_lines(self._path)
        except Exception:
            self._transition(RunState.FAILED)
            raise
        self._logger.info("Found %d lines to process", total)

        self._transition(RunState.STREAMING)
        progress = self._progress_factory(total)
        with ThreadPoolExecutor(
            max_workers=self._settings.concurrency, thread_name_prefix="bulk"
        ) as executor:
            self._submitter = BulkSubmitter(self._client, executor, self._logger)
            batcher = Batcher(self._settings.max_bulk, self._dispatch)
            try:
                self._stream(batcher, progress)
                self._transition(RunState.DRAINING)
                batcher.flush()
                self._collect(wait(self._outstanding).done)
            except Exception:
                self._transition(RunState.FAILED)
                self._settle_outstanding()
                raise
            finally:
                progress.close()

        self._transition(RunState.DONE)
        self._logger.info("Done")
        return RunSummary(
            total_lines=total,
            lines_read=self._lines_read,
            lines_skipped=self._lines_skipped,
            records_submitted=self._records_submitted,
            batches_submitted=self._batches_submitted,
            batches_failed=self._batches_failed,
            documents_rejected=self._documents_rejected,
        )

    def _transition(self, new_state: RunState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            old = self._state.value if self._state else "new"
            raise IngestError(f"Illegal run state transition {old} -> {new_state.value}")
        self._logger.debug("run state %s -> %s", self._state and self._state.value, new_state.value)
        self._state = new_state

    def _stream(self, batcher: Batcher, progress: Any) -> None:
        for line_number, line in enumerate(iter_lines(self._path), 1):
            progress.advance()
            self._lines_read += 1
            try:
                record = decode_line(line, line_number)
            except RecordDecodeError as e:
                if not self._settings.skip_malformed:
                    raise
                self._lines_skipped += 1
                self._logger.warning("skipping line %d: %s", line_number, e)
                continue
            batcher.offer(sanitize(record))
            self._poll()

    def _dispatch(self, batch: Batch) -> None:
        """Submit a sealed batch once fewer than concurrency writes are outstanding."""
        while len(self._outstanding) >= self._settings.concurrency:
            self._collect(wait(self._outstanding, return_when=FIRST_COMPLETED).done)
        self._outstanding.add(self._submitter.submit(batch))
        self._records_submitted += len(batch)
        self._batches_submitted += 1

    def _poll(self) -> None:
        done = {f for f in self._outstanding if f.done()}
        if done:
            self._collect(done)

    def _collect(self, done: set) -> None:
        """Account for finished submissions; raise if any of them lost the store."""
        fatal: Optional[SubmissionResult] = None
        for future in done:
            self._outstanding.discard(future)
            result: SubmissionResult = future.result()
            if result.outcome is not SubmissionOutcome.SUCCESS:
                self._batches_failed += 1
                self._documents_rejected += result.rejected_count
            if result.is_fatal and (fatal is None or result.sequence < fatal.sequence):
                fatal = result
        if fatal is not None:
            raise FatalSubmissionError(
                f"No connection to elasticsearch at {self._settings.host} "
                f"(bulk {fatal.sequence}): {fatal.error}",
                fatal.sequence,
            )

    def _settle_outstanding(self) -> None:
        # outcomes are already logged by the submitter; they no longer change the run state
        if not self._outstanding:
            return
        self._logger.debug("waiting for %d outstanding bulk writes", len(self._outstanding))
        wait(self._outstanding)
        self._outstanding.clear()

