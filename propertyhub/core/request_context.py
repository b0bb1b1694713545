import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

logger = logging.getLogger("propertyhub.requests")


class RequestIdFilter(logging.Filter):
    """Expose the current request id to log formatters as ``%(request_id)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


def assign_request_id(request: Request) -> str:
    request_id = request.headers.get(REQUEST_ID_HEADER) or request.headers.get(CORRELATION_ID_HEADER)
    if not request_id:
        request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    request_id_var.set(request_id)
    return request_id


async def request_context_middleware(request: Request, call_next):
    request_id = assign_request_id(request)
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={"duration_ms": elapsed_ms},
    )
    return response
