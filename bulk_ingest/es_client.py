#!/usr/bin/env python3
"""Elasticsearch client for bulk ingestion."""
import functools

from elasticsearch import Elasticsearch

from bulk_ingest.config import IngestSettings
from bulk_ingest.errors import StartupError


def normalize_host(host: str) -> str:
    """Return host with a scheme; bare host:port (e.g. localhost:9200) gets http://."""
    host = host.strip().rstrip("/")
    if "://" not in host:
        host = f"http://{host}"
    return host


@functools.lru_cache(maxsize=1)
def get_client(settings: IngestSettings) -> Elasticsearch:
    """Return an Elasticsearch client for settings (api_key auth only when one is configured)."""
    kwargs = {
        "verify_certs": settings.verify_tls,
        "request_timeout": settings.request_timeout,
        "max_retries": settings.max_retries,
        "retry_on_timeout": settings.retry_on_timeout,
    }
    if settings.api_key:
        kwargs["api_key"] = settings.api_key
    try:
        return Elasticsearch(normalize_host(settings.host), **kwargs)
    except ValueError as e:
        raise StartupError(f"Invalid Elasticsearch host {settings.host!r}: {e}") from e
