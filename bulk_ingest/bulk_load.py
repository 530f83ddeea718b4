#!/usr/bin/env python3
"""Bulk load a line-delimited JSON file into Elasticsearch."""
import argparse
import dataclasses
import logging
import sys
from typing import Optional, Sequence

from tqdm.contrib.logging import logging_redirect_tqdm

from bulk_ingest.config import IngestSettings, positive_int
from bulk_ingest.errors import IngestError, StartupError
from bulk_ingest.es_client import get_client
from bulk_ingest.line_source import resolve_source_path
from bulk_ingest.logging_config import CLIENT_LOGGERS, configure_logging
from bulk_ingest.pipeline import PipelineDriver


def build_parser() -> argparse.ArgumentParser:
    # -h is the host flag, so help is --help only
    parser = argparse.ArgumentParser(
        description="Stream an NDJSON bulk file into Elasticsearch.", add_help=False
    )
    parser.add_argument("--help", action="help", help="Show this message and exit")
    parser.add_argument("--file", "-f", default=None, help="Source NDJSON file (absolute or relative to cwd)")
    parser.add_argument("--host", "-h", default=None, help="Elasticsearch endpoint (default: $ES_HOST or localhost:9200)")
    parser.add_argument("--max-bulk", default=None, help="Records per bulk request (default: $INGEST_MAX_BULK or 100)")
    parser.add_argument(
        "--concurrency",
        default=None,
        help=(
            "Bulk requests in flight at once (default: $INGEST_CONCURRENCY or 4). "
            "Requests already sent when the cluster becomes unreachable still complete; "
            "use 1 to stop after the first failed request"
        ),
    )
    parser.add_argument("--skip-malformed", action="store_true", help="Skip lines that are not valid JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def settings_from_args(args: argparse.Namespace) -> IngestSettings:
    """Env settings with CLI flags applied on top."""
    if not isinstance(args.file, str) or not args.file.strip():
        raise StartupError("--file option must be provided")
    settings = IngestSettings.from_env()
    overrides = {}
    if args.host:
        overrides["host"] = args.host.strip()
    if args.max_bulk is not None:
        overrides["max_bulk"] = positive_int("--max-bulk", args.max_bulk)
    if args.concurrency is not None:
        overrides["concurrency"] = positive_int("--concurrency", args.concurrency)
    if args.skip_malformed:
        overrides["skip_malformed"] = True
    return dataclasses.replace(settings, **overrides)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logger = configure_logging(verbose=args.verbose)

    try:
        settings = settings_from_args(args)
        path = resolve_source_path(args.file)
        driver = PipelineDriver(path, get_client(settings), settings, logger=logger)
        loggers = [logger] + [logging.getLogger(name) for name in CLIENT_LOGGERS]
        with logging_redirect_tqdm(loggers=loggers):
            summary = driver.run()
    except IngestError as e:
        logger.error("%s", e)
        sys.exit(1)

    logger.info(
        "%d lines read, %d records in %d bulk requests, %d failed (%d documents lost), %d lines skipped",
        summary.lines_read,
        summary.records_submitted,
        summary.batches_submitted,
        summary.batches_failed,
        summary.documents_rejected,
        summary.lines_skipped,
    )


if __name__ == "__main__":
    main()
