"""
Engine exceptions and FastAPI exception handlers.

Services raise these; the HTTP layer maps them to status codes. Messages are
meant to be shown to users verbatim.
"""
import logging
import uuid
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CORError(Exception):
    """Base class for all COR engine errors."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class NotFoundError(CORError):
    """Referenced audit, certificate, auditor or deficiency does not exist."""

    def __init__(self, entity: str, entity_id: Optional[Any] = None):
        msg = f"{entity} not found" if entity_id is None else f"{entity} '{entity_id}' not found"
        super().__init__(msg, status_code=404, code="NOT_FOUND")
        self.entity = entity
        self.entity_id = entity_id


class PreconditionError(CORError):
    """A business rule rejected the operation before anything was written."""

    def __init__(self, message: str, rule: Optional[str] = None, required: Optional[Any] = None):
        super().__init__(message, status_code=422, code="PRECONDITION_FAILED")
        self.rule = rule
        self.required = required


class InvalidTransitionError(PreconditionError):
    """Audit status change not allowed from the current state."""

    def __init__(self, current: str, target: str, reason: Optional[str] = None):
        msg = f"Cannot move audit from '{current}' to '{target}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, rule="audit_state_machine")
        self.status_code = 409
        self.code = "INVALID_TRANSITION"
        self.current = current
        self.target = target


class StoreError(CORError):
    """The underlying persistence call failed. Not retried by the engine."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause}", status_code=503, code="STORE_ERROR")
        self.operation = operation
        self.cause = cause


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", None) or str(uuid.uuid4())


def register_exception_handlers(app: FastAPI) -> None:
    """Attach engine exception handlers to the FastAPI app."""

    @app.exception_handler(CORError)
    async def cor_error_handler(request: Request, exc: CORError) -> JSONResponse:
        trace_id = _trace_id(request)
        log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(log_level, f"[{trace_id}] {exc.code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code, "trace_id": trace_id},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        trace_id = _trace_id(request)
        logger.error(
            f"[{trace_id}] Unhandled exception: {type(exc).__name__}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
                "trace_id": trace_id,
            },
        )
