"""
Exception handlers — account failures leave as ``{"error": <message>}``.

Unexpected errors are turned into an opaque 500 by ``api.middleware``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from auth.exceptions import AccountError, ValidationFailed

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Map account errors and bad request bodies to JSON."""

    @app.exception_handler(AccountError)
    async def account_error(request: Request, exc: AccountError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %r", request.method, request.url.path, exc.__cause__ or exc)
        return error_response(exc.status_code, exc.public_message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        logger.debug("Rejected body on %s: %s", request.url.path, exc.errors())
        return error_response(status.HTTP_400_BAD_REQUEST, ValidationFailed.public_message)
