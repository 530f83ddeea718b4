"""Exception hierarchy for bulk ingestion.

Startup and file errors stop a run before it starts; decode and fatal
submission errors stop it midway. Partial bulk failures are not exceptions.
"""


class IngestError(Exception):
    """Base exception for all ingest failures."""


class StartupError(IngestError):
    """Raised for missing or invalid configuration."""


class FileAccessError(IngestError):
    """Raised when the source file cannot be opened or read."""


class RecordDecodeError(IngestError):
    """Raised when a source line is not valid JSON."""

    def __init__(self, message: str, line_number: int) -> None:
        super().__init__(message)
        self.line_number = line_number


class FatalSubmissionError(IngestError):
    """Raised when the store has no reachable node for a bulk write."""

    def __init__(self, message: str, sequence: int) -> None:
        super().__init__(message)
        self.sequence = sequence
