"""
Request guard middleware.

Registered before ``CORSMiddleware`` so it runs inside it: an unexpected
error becomes an opaque 500 here and still passes back through CORS, which
a credentialed cross-origin frontend needs in order to read the response.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request, status

from api.errors import error_response

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error."


def register_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_guard(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.info("%s %s -> %d in %.3fs", request.method, request.url.path, response.status_code, elapsed)
        return response
