"""
Request middleware: request id propagation and access logging.
"""
from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from studentnest.core.logging import get_logger, request_id as request_id_ctx, user_id as user_id_ctx

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Reuse the upstream X-Request-ID or mint one, expose it on
    request.state and bind it, with the caller's X-User-Id, to the
    logging context for the rest of the request.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID", user_header: str = "X-User-Id"):
        super().__init__(app)
        self.header_name = header_name
        self.user_header = user_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id
        request_token = request_id_ctx.set(request_id)
        user_token = user_id_ctx.set(request.headers.get(self.user_header))
        try:
            response = await call_next(request)
        finally:
            user_id_ctx.reset(user_token)
            request_id_ctx.reset(request_token)

        response.headers[self.header_name] = request_id
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """Log each request with its status and duration; adds X-Process-Time."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            "Request completed",
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time": f"{process_time:.4f}s",
            },
        )
        return response


def register_middlewares(app: FastAPI) -> None:
    # Added last runs first: the request id must exist before timing logs it
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
