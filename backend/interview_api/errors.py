"""Error taxonomy shared by services and routers.

Services raise these instead of HTTP errors; the handlers registered in
``interview_api.main`` turn them into ``{"error": kind, "message": ...}``.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class InterviewServiceError(ValueError):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(InterviewServiceError):
    kind = "invalid_request"
    status_code = 400


class Unauthorized(InterviewServiceError):
    kind = "unauthorized"
    status_code = 401


class Forbidden(InterviewServiceError):
    kind = "forbidden"
    status_code = 403


class NotFound(InterviewServiceError):
    kind = "not_found"
    status_code = 404


class InvalidState(InterviewServiceError):
    kind = "invalid_state"
    status_code = 409


class Conflict(InterviewServiceError):
    kind = "conflict"
    status_code = 409


class NotConfigured(InterviewServiceError):
    kind = "not_configured"
    status_code = 501


def error_body(kind: str, message: str) -> dict:
    return {"error": kind, "message": message}


async def service_error_handler(_request: Request, exc: InterviewServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.kind, exc.message))


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    # Report the first offending field only; full pydantic output leaks schema detail
    errors = exc.errors()
    field = ".".join(str(p) for p in errors[0]["loc"][1:]) if errors else ""
    message = f"Invalid value for '{field}'" if field else "Malformed request"
    return JSONResponse(status_code=400, content=error_body(InvalidRequest.kind, message))


async def store_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Store failure", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_body("store_failure", "The request could not be completed, retry later"),
    )
