"""Exception handlers — render domain errors as ``{"error", "detail"}`` JSON."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from resolution_engine.domain.errors import (
    DependencyFailure,
    Forbidden,
    InvalidTransition,
    NotFound,
    ResolutionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[ResolutionError], int] = {
    NotFound: 404,
    Forbidden: 403,
    InvalidTransition: 409,
    ValidationError: 400,
    DependencyFailure: 503,
}


def error_body(error: ResolutionError) -> dict:
    body = {"error": error.kind, "detail": error.reason}
    if error.retryable:
        body["retryable"] = True
    return body


def status_for(error: ResolutionError) -> int:
    for cls in type(error).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500


async def resolution_error_handler(request: Request, exc: ResolutionError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.reason)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.kind, exc.reason)
    return JSONResponse(status_code=status, content=error_body(exc))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    error = DependencyFailure("Relational store unavailable")
    return JSONResponse(status_code=503, content=error_body(error))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ResolutionError, resolution_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
