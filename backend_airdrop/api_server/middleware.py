"""
HTTP middleware and request-lifecycle helpers.

- Request logging: per-request id bound into structlog contextvars, plus
  method, path, status and duration once the response is ready.
- run_until_disconnected: abandon a request's in-flight upstream work when
  its caller goes away, without touching other requests.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from fastapi import Request
from starlette.responses import Response

from backend_airdrop.airdrop_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

REQUEST_ID_HEADER = "X-Request-ID"


class ClientDisconnected(Exception):
    """The inbound HTTP client disconnected before the work finished."""


async def request_logging_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_request_failed",
            method=request.method,
            path=request.url.path,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        raise
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        "http_request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return response


async def run_until_disconnected(
    request: Request,
    work: Awaitable[T],
    *,
    poll_sec: float = 0.5,
) -> T:
    """
    Await `work`, polling the client connection every `poll_sec` seconds.

    On disconnect the work task is cancelled (its upstream calls with it) and
    ClientDisconnected is raised.
    """
    task: asyncio.Future[Any] = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_sec)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()
