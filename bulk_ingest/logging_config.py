"""Logger setup for the ingest CLI and the store client's diagnostic channel."""
import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = "bulk_ingest"
# elasticsearch-py logs requests/responses on these; kept at warning unless verbose
CLIENT_LOGGERS = ("elasticsearch", "elastic_transport")

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(verbose: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach a single stream handler to the ingest and client loggers; return the ingest logger."""
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))

    logger = get_logger()
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    for name in CLIENT_LOGGERS:
        client_logger = logging.getLogger(name)
        client_logger.handlers = [handler]
        client_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
        client_logger.propagate = False
    return logger
