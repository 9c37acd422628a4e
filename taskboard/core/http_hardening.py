"""Request tracing and response headers shared by every route.

Each request gets an ``X-Request-ID`` (the caller's when it is well formed,
a fresh one otherwise) that is echoed back, stored on ``request.state`` and
written to the ``taskboard.http`` access log.
"""

from __future__ import annotations

import logging
import re
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "Server-Timing"
_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,128}")
_LOG = logging.getLogger("taskboard.http")

# Responses carry per-user task and membership data.
API_RESPONSE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Cache-Control": "no-store",
}


def resolve_request_id(raw: str | None) -> str:
    candidate = (raw or "").strip()
    return candidate if _SAFE_REQUEST_ID.fullmatch(candidate) else uuid4().hex


def _stamp(response: Response, request_id: str, elapsed_ms: float) -> None:
    response.headers.update(API_RESPONSE_HEADERS)
    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers[RESPONSE_TIME_HEADER] = f"app;dur={elapsed_ms:.1f}"


def install_http_hardening(app: FastAPI) -> None:
    @app.middleware("http")
    async def _trace_and_harden(request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        started = perf_counter()

        response = await call_next(request)

        elapsed_ms = (perf_counter() - started) * 1000.0
        _stamp(response, request_id, elapsed_ms)
        _LOG.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            "request_id=%s %s %s -> %s in %.1fms",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response
