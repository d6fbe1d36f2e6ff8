"""LoggingMiddleware -- 请求级日志

沿用调用方提供的 X-Request-ID（不超过 64 字符），否则生成 ULID；
绑定到 structlog contextvars，记录耗时与状态码，4xx/5xx 以 warning 级别记录。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_REQUEST_ID_LENGTH = 64

log = structlog.get_logger()


def resolve_request_id(header_value: str | None) -> str:
    """取调用方提供的 request_id，缺失或过长时生成新的 ULID"""
    if header_value and len(header_value) <= _MAX_REQUEST_ID_LENGTH:
        return header_value
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        started = time.monotonic()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
        except Exception:
            await log.aexception(
                "request_failed",
                elapsed_ms=int((time.monotonic() - started) * 1000),
            )
            raise

        elapsed_ms = int((time.monotonic() - started) * 1000)
        if response.status_code >= 400:
            await log.awarning(
                "request_rejected",
                status_code=response.status_code,
                elapsed_ms=elapsed_ms,
            )
        else:
            await log.ainfo(
                "request_completed",
                status_code=response.status_code,
                elapsed_ms=elapsed_ms,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
