"""
Structured failures raised by the service layer.

Every error is an ``HTTPException`` so route handlers can let it propagate;
the handlers registered in ``install_error_handlers`` render all of them, plus
request validation errors and unexpected exceptions, as one JSON envelope:

    {"error": {"code": "...", "message": "...", "status": 409}}
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

log = structlog.get_logger()


class HubError(HTTPException):
    """Base class for recoverable, caller-facing failures."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class Unauthenticated(HubError):
    status_code = 401
    code = "UNAUTHENTICATED"

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class Forbidden(HubError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(HubError):
    status_code = 404
    code = "NOT_FOUND"


class InvariantViolation(HubError):
    status_code = 409
    code = "INVARIANT_VIOLATION"


class ValidationFailed(HubError):
    status_code = 422
    code = "VALIDATION_ERROR"


def error_body(code: str, message: str, status: int) -> dict:
    return {"error": {"code": code, "message": message, "status": status}}


async def _hub_error_handler(request: Request, exc: HubError) -> JSONResponse:
    log.info(
        "request.rejected",
        code=exc.code,
        status=exc.status_code,
        detail=exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, str(exc.detail), exc.status_code),
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=422,
        content=error_body(ValidationFailed.code, "; ".join(messages), 422),
    )


async def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # A concurrent writer won the race past our pre-checks
    log.warning("request.conflict", error=str(exc.orig))
    return JSONResponse(
        status_code=409,
        content=error_body(
            InvariantViolation.code, "Conflicting concurrent update, please retry", 409
        ),
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.failed", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "Internal server error", 500),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HubError, _hub_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(IntegrityError, _integrity_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
