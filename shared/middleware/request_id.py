import contextvars
import logging
import uuid
from collections.abc import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID_VAR: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "academy_request_id",
    default=None,
)


def current_request_id() -> str | None:
    return _REQUEST_ID_VAR.get()


class RequestIdLogFilter(logging.Filter):
    """Stamp ``record.request_id`` so formatters can use ``%(request_id)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _REQUEST_ID_VAR.get() or "-"
        return True


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    token = _REQUEST_ID_VAR.set(request_id)
    try:
        response = await call_next(request)
    finally:
        _REQUEST_ID_VAR.reset(token)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response
