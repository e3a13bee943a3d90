import logging

import pytest

from shared.middleware.request_id import REQUEST_ID_HEADER, RequestIdLogFilter


@pytest.mark.asyncio
async def test_health(api_client) -> None:
    resp = await api_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "academy"}
    assert resp.headers[REQUEST_ID_HEADER]


@pytest.mark.asyncio
async def test_request_id_is_echoed(api_client) -> None:
    resp = await api_client.get("/health", headers={REQUEST_ID_HEADER: "abc123"})
    assert resp.headers[REQUEST_ID_HEADER] == "abc123"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(api_client) -> None:
    resp = await api_client.get("/nope", headers={REQUEST_ID_HEADER: "req-1"})
    assert resp.status_code == 404
    assert resp.json() == {
        "error": {"code": "http_404", "message": "Not Found"},
        "request_id": "req-1",
    }


def test_log_filter_outside_request_uses_placeholder() -> None:
    record = logging.LogRecord("academy", logging.INFO, __file__, 1, "msg", None, None)
    assert RequestIdLogFilter().filter(record)
    assert record.request_id == "-"
