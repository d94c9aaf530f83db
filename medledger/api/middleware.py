"""Middleware and error translation for the MedLedger API.

Domain errors are translated to HTTP responses here; the core never knows about
status codes.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from medledger.domain.ports import (
    ConflictError,
    IdentityError,
    LedgerError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its request id, client address and endpoint.

    The request id is taken from an incoming ``X-Request-ID`` header when present
    and echoed back on the response together with ``X-Process-Time``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        context = {
            "request_id": request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex,
            "client_ip": request.client.host if request.client else "unknown",
            "endpoint": f"{request.method} {request.url.path}",
        }

        logger.info(f"{context['endpoint']} - Client: {context['client_ip']}", extra=context)

        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        response.headers[REQUEST_ID_HEADER] = context["request_id"]

        logger.info(
            f"{context['endpoint']} - Status: {response.status_code} - Time: {process_time:.3f}s",
            extra=context
        )
        return response


def _error_response(status_code: int, error: str, exc: LedgerError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "detail": str(exc)})


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(404, "Not Found", exc)


async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return _error_response(409, "Conflict", exc)


async def identity_handler(request: Request, exc: IdentityError) -> JSONResponse:
    logger.warning(f"Rejected request with unusable identity: {str(exc)}")
    return _error_response(401, "Unauthorized", exc)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    logger.error(f"Ledger error on {request.url.path}: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": "The ledger could not complete the operation"}
    )


def setup_middleware(app: FastAPI) -> None:
    """Register request logging and domain error translation."""
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(IdentityError, identity_handler)
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_middleware(LoggingMiddleware)
