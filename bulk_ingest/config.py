"""Runtime settings for bulk ingestion, read from env / .env and overridden by CLI flags."""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from bulk_ingest.errors import StartupError

DEFAULT_HOST = "localhost:9200"
DEFAULT_MAX_BULK = 100
DEFAULT_CONCURRENCY = 4


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _bool_env(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def positive_int(name: str, raw: object) -> int:
    """Parse a strictly positive integer or raise StartupError naming the setting."""
    try:
        value = int(raw)
    except (TypeError, ValueError) as e:
        raise StartupError(f"{name} must be a positive integer, got {raw!r}") from e
    if value < 1:
        raise StartupError(f"{name} must be a positive integer, got {value}")
    return value


@dataclass(frozen=True)
class IngestSettings:
    """Validated settings for one ingest run.

    Attributes:
        host: Store endpoint, with or without scheme.
        api_key: Optional API key for the store.
        verify_tls: Whether to verify TLS certificates.
        request_timeout: Per-request timeout in seconds.
        max_retries: Client-side retries before a node is considered dead.
        retry_on_timeout: Whether the client retries timed-out requests.
        max_bulk: Records per bulk write.
        concurrency: Maximum bulk writes in flight at once.
        skip_malformed: Skip undecodable lines instead of failing the run.
    """

    host: str = DEFAULT_HOST
    api_key: Optional[str] = None
    verify_tls: bool = True
    request_timeout: int = 10
    max_retries: int = 2
    retry_on_timeout: bool = True
    max_bulk: int = DEFAULT_MAX_BULK
    concurrency: int = DEFAULT_CONCURRENCY
    skip_malformed: bool = False

    @classmethod
    def from_env(cls) -> "IngestSettings":
        """Build settings from the process environment (after loading .env).

        Raises:
            StartupError: If INGEST_MAX_BULK or INGEST_CONCURRENCY is not a positive integer.
        """
        load_dotenv()
        return cls(
            host=(os.getenv("ES_HOST") or DEFAULT_HOST).strip(),
            api_key=(os.getenv("ES_API_KEY") or "").strip() or None,
            verify_tls=_bool_env("ES_VERIFY_TLS", "true"),
            request_timeout=_int_env("ES_REQUEST_TIMEOUT", 10),
            max_retries=_int_env("ES_MAX_RETRIES", 2),
            retry_on_timeout=_bool_env("ES_RETRY_ON_TIMEOUT", "true"),
            max_bulk=positive_int("INGEST_MAX_BULK", os.getenv("INGEST_MAX_BULK", DEFAULT_MAX_BULK)),
            concurrency=positive_int(
                "INGEST_CONCURRENCY", os.getenv("INGEST_CONCURRENCY", DEFAULT_CONCURRENCY)
            ),
        )
