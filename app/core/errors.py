# app/core/errors.py
"""
Error taxonomy shared by services and routers.

Services raise these; routers never catch them. The handlers registered by
`register_exception_handlers` turn them into JSON responses:

    {"message": "...", "details": {...}}
"""
from __future__ import annotations
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for every error the store reports to a caller."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code


class InvalidInput(StoreError):
    """Malformed or missing request fields."""
    status_code = 400


class NotFound(StoreError):
    """Referenced user, product or review does not exist."""
    status_code = 404


class PreconditionFailed(StoreError):
    """The operation needs state the caller has not established yet."""
    status_code = 400


class RecommendationServiceUnavailable(StoreError):
    """The external ranking service could not be reached or errored."""
    status_code = 503


class MalformedUpstreamResponse(StoreError):
    """
    The ranking service answered but nothing usable could be extracted.
    Never reaches a caller: the reranker swaps in its fallback ordering.
    """
    status_code = 502


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(level, "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StoreError, _store_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
