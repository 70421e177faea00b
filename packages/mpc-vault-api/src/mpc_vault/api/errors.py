"""
Exception → ``{success: false, error}`` mapping for FastAPI.

- VaultApiError subclasses answer with their own status code.
- Request body/param coercion failures answer 400.
- Starlette HTTPException (unknown route, wrong method) keeps its status.
- Anything else is caught by ErrorEnvelopeMiddleware and answers 500.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ..types import VaultApiError
from .models import error_body

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or "-"


def _log(request: Request, status: int, message: str) -> None:
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(
        level,
        "%s %s -> %d: %s [request_id=%s]",
        request.method, request.url.path, status, message, _request_id(request),
    )


async def _handle_vault_error(request: Request, exc: VaultApiError) -> JSONResponse:
    _log(request, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    message = "Invalid request: " + "; ".join(problems)
    _log(request, 400, message)
    return JSONResponse(status_code=400, content=error_body(message))


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = str(exc.detail) if exc.detail else "Request failed"
    _log(request, exc.status_code, message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Convert unexpected exceptions into a 500 error envelope."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "Unhandled error on %s %s [request_id=%s]",
                request.method, request.url.path, _request_id(request),
            )
            return JSONResponse(
                status_code=500,
                content=error_body(str(exc) or "Internal server error"),
            )


def install_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the given FastAPI app."""
    app.add_exception_handler(VaultApiError, _handle_vault_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_middleware(ErrorEnvelopeMiddleware)
