# Binds a request id into the structlog context and logs
# method / path / status / duration for every request.

import time
import uuid

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from carebook.core.exceptions import INTERNAL_ERROR, error_body

logger = structlog.get_logger("carebook.access")

REQUEST_ID_HEADER = "X-Request-ID"


async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    request.state.request_id = request_id

    start_ts = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed",
            method=request.method,
            path=request.url.path,
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            duration_ms=int((time.perf_counter() - start_ts) * 1000),
        )
        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(INTERNAL_ERROR),
        )
    else:
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=int((time.perf_counter() - start_ts) * 1000),
        )

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
