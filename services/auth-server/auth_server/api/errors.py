"""Translate domain and request errors into the JSON error envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import AuthServerError, ValidationError

logger = logging.getLogger(__name__)


def error_body(code: str, message: str) -> dict[str, str]:
    return {"error": code, "message": message}


async def handle_auth_server_error(request: Request, exc: AuthServerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.detail,
            exc_info=exc,
        )
    else:
        logger.info("%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, exc.code)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.public_message))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        message = "Malformed JSON body"
    else:
        fields = sorted({".".join(str(part) for part in err.get("loc", ())[1:]) or "body" for err in errors})
        message = f"Invalid or missing fields: {', '.join(fields)}"
    return await handle_auth_server_error(request, ValidationError(message))


def register_error_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on ``app``."""
    app.add_exception_handler(AuthServerError, handle_auth_server_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
