import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


def error_body(request: Request, code: str, message: str) -> dict:
    return {
        "error": {"code": code, "message": message},
        "request_id": getattr(request.state, "request_id", None),
    }


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Last-resort handler: anything that escapes the routers becomes a 500 envelope."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception(
            "Unhandled exception path=%s request_id=%s",
            request.url.path,
            getattr(request.state, "request_id", None),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(request, "internal_error", "An unexpected error occurred"),
        )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render ``HTTPException`` raised by controllers in the error envelope shape."""
    status_code = getattr(exc, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR)
    detail = getattr(exc, "detail", None)
    message = detail if isinstance(detail, str) else str(detail)
    return JSONResponse(
        status_code=status_code,
        content=error_body(request, f"http_{status_code}", message),
        headers=getattr(exc, "headers", None),
    )
