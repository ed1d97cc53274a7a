"""Request identifier propagation for the HTTP surface.

Every request gets an id, read from the incoming ``X-Request-ID`` header or
generated as a UUIDv4. The id is stored in ``REQUEST_ID_CTX`` so log records
emitted anywhere downstream (including the store) can be correlated, and is
echoed back on the response.
"""

import uuid

from fastapi import Request

from .logging_filters import REQUEST_ID_CTX
from .logs import get_logger

REQUEST_HEADER = "X-Request-ID"

logger = get_logger("orderstore.http")


async def add_request_id(request: Request, call_next):
    """HTTP middleware that sets and returns a per-request identifier.

    Args:
        request: Incoming request.
        call_next: Next handler in the middleware chain.

    Returns:
        The downstream response with the ``X-Request-ID`` header set.
    """
    rid = request.headers.get(REQUEST_HEADER) or str(uuid.uuid4())
    request.state.request_id = rid
    token = REQUEST_ID_CTX.set(rid)
    try:
        response = await call_next(request)
    finally:
        logger.info("request handled", extra={"path": request.url.path, "method": request.method})
        REQUEST_ID_CTX.reset(token)
    response.headers[REQUEST_HEADER] = rid
    return response
