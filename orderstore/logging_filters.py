"""Logging filter that stamps records with the current request id."""

import contextvars
from logging import Filter, LogRecord

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    The value comes from ``REQUEST_ID_CTX``, which the HTTP middleware sets
    per request; outside a request it is "-" so formatters can always
    reference ``%(request_id)s``.
    """

    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True
