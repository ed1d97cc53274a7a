"""JSON logging setup shared by the store and the HTTP surface."""

import logging

from pythonjsonlogger import jsonlogger

from . import settings
from .logging_filters import RequestIdFilter

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes JSON lines to stderr.

    The handler is installed once per logger name, so repeated calls (or
    module reloads) do not duplicate output. Records do not propagate to
    parent loggers: "orderstore.repository" and "orderstore" each carry
    their own handler and would otherwise both write the same record.

    Args:
        name: Logger name, e.g. "orderstore.repository".

    Returns:
        logging.Logger: Configured logger.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
        logger.setLevel(settings.LOG_LEVEL.upper())
        logger.propagate = False
    return logger
