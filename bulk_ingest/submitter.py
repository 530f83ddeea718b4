"""Send batches to the store's bulk endpoint on a worker pool and classify each outcome."""
import enum
import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Any, Optional

from elastic_transport import ConnectionError as EsConnectionError
from elastic_transport import TransportError
from elasticsearch import ApiError

from bulk_ingest.batcher import Batch


class SubmissionOutcome(enum.Enum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass(frozen=True)
class SubmissionResult:
    """Resolved state of one bulk write. rejected_ids lists documents the store refused."""

    sequence: int
    batch_size: int
    outcome: SubmissionOutcome
    error: Optional[str] = None
    rejected_count: int = 0
    rejected_ids: tuple = ()

    @property
    def is_fatal(self) -> bool:
        return self.outcome is SubmissionOutcome.FATAL_FAILURE


def _item_errors(resp: Any) -> tuple[list, list]:
    """Return (errors, ids) for failed items of a bulk response; each item is {op_type: result}."""
    errors, ids = [], []
    for item in resp.get("items") or []:
        for result in item.values():
            if isinstance(result, dict) and "error" in result:
                errors.append(result["error"])
                if result.get("_id") is not None:
                    ids.append(result["_id"])
    return errors, ids


def _transport_message(error: Exception) -> str:
    """Message of a client exception plus its first cause; str() of a bare ConnectionError is generic."""
    message = str(getattr(error, "message", "") or error)
    causes = getattr(error, "errors", ()) or ()
    if causes:
        message = f"{message}, caused by: {causes[0]}"
    return message


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        reason = error.get("reason") or ""
        kind = error.get("type") or "error"
        return f"{kind}: {reason}" if reason else kind
    return str(error)


class BulkSubmitter:
    """Run bulk writes on executor; never retries, never raises for store errors.

    A bulk call that fails because no node is reachable resolves FATAL_FAILURE;
    every other store error, including per-document rejections, resolves
    PARTIAL_FAILURE and is logged. Deciding what to do next is left to the caller.
    """

    def __init__(self, client: Any, executor: Executor, logger: logging.Logger) -> None:
        self._client = client
        self._executor = executor
        self._logger = logger

    def submit(self, batch: Batch) -> "Future[SubmissionResult]":
        return self._executor.submit(self._send, batch)

    def _send(self, batch: Batch) -> SubmissionResult:
        try:
            resp = self._client.bulk(operations=list(batch.records))
        except EsConnectionError as e:
            return self._failed(batch, SubmissionOutcome.FATAL_FAILURE, e, _transport_message(e))
        except (ApiError, TransportError) as e:
            return self._failed(batch, SubmissionOutcome.PARTIAL_FAILURE, e, _transport_message(e))

        # client returns ObjectApiResponse; unwrap to the dict body
        resp = getattr(resp, "body", resp) if not isinstance(resp, dict) else resp
        if not resp.get("errors"):
            self._logger.debug("bulk %d: %d records written", batch.sequence, len(batch))
            return SubmissionResult(batch.sequence, len(batch), SubmissionOutcome.SUCCESS)

        errors, ids = _item_errors(resp)
        message = f"{len(errors)} rejected, first: {_error_message(errors[0])}" if errors else "errors reported"
        return self._failed(
            batch, SubmissionOutcome.PARTIAL_FAILURE, errors, message, len(errors) or len(batch), tuple(ids)
        )

    def _failed(
        self,
        batch: Batch,
        outcome: SubmissionOutcome,
        detail: Any,
        message: str,
        rejected_count: Optional[int] = None,
        rejected_ids: tuple = (),
    ) -> SubmissionResult:
        self._logger.error(
            "error during bulk %d (%d records, %s): %s",
            batch.sequence,
            len(batch),
            outcome.value,
            message,
        )
        self._logger.debug("full error for bulk %d: %r", batch.sequence, detail)
        if rejected_ids:
            self._logger.debug("rejected ids for bulk %d: %s", batch.sequence, list(rejected_ids))
        if rejected_count is None:
            rejected_count = len(batch)
        return SubmissionResult(batch.sequence, len(batch), outcome, message, rejected_count, rejected_ids)
