"""Fake store client and NDJSON helpers shared by tests."""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any


class FakeStore:
    """Records bulk calls; behaviours and delays are keyed by 1-based call number."""

    def __init__(
        self,
        behaviours: dict[int, Any] | None = None,
        delay: float = 0.0,
        delays: dict[int, float] | None = None,
    ) -> None:
        self.behaviours = behaviours or {}
        self.delay = delay
        self.delays = delays or {}
        self.completed = 0
        self.calls: list[list[Any]] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def bulk(self, operations: list[Any]) -> dict[str, Any]:
        with self._lock:
            self.calls.append(list(operations))
            call_number = len(self.calls)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            delay = self.delays.get(call_number, self.delay)
            if delay:
                time.sleep(delay)
            behaviour = self.behaviours.get(call_number)
            if isinstance(behaviour, BaseException):
                raise behaviour
            if behaviour is not None:
                return behaviour
            return {"errors": False, "items": []}
        finally:
            with self._lock:
                self.active -= 1
                self.completed += 1


class FakeProgress:
    """Progress reporter stand-in that only counts ticks."""

    def __init__(self, total: int) -> None:
        self.total = total
        self.count = 0
        self.closed = False

    def advance(self) -> None:
        self.count += 1

    def close(self) -> None:
        self.closed = True


def rejected_response(*ids: str) -> dict[str, Any]:
    """Bulk response where each id was rejected with a mapping error."""
    items = [
        {
            "index": {
                "_id": doc_id,
                "status": 400,
                "error": {"type": "mapper_parsing_exception", "reason": f"failed to parse {doc_id}"},
            }
        }
        for doc_id in ids
    ]
    return {"errors": True, "items": items}


def write_ndjson(path: Path, count: int) -> Path:
    """Write count newline-terminated JSON lines to path."""
    lines = [json.dumps({"n": index}) + "\n" for index in range(count)]
    path.write_text("".join(lines), encoding="utf-8")
    return path
