"""Exception handlers: consistent JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pellet.analytics.service import AnalyticsUnavailable
from pellet.store.errors import DuplicateIdentityError, DuplicateTagError, UserNotFound
from pellet.tagging.errors import TagSubmissionFailed, TagValidationError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(TagValidationError)
    async def tag_validation_handler(_request: Request, exc: TagValidationError) -> JSONResponse:
        """Rejected before any write; the message is safe to show the driver."""
        return JSONResponse(
            status_code=422,
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(TagSubmissionFailed)
    async def submission_failed_handler(_request: Request, exc: TagSubmissionFailed) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"detail": exc.user_message, "code": "submission_failed", "tag_id": exc.tag_id},
        )

    @app.exception_handler(DuplicateTagError)
    async def duplicate_tag_handler(_request: Request, exc: DuplicateTagError) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": "Tag id already in use", "code": "duplicate_tag"},
        )

    @app.exception_handler(DuplicateIdentityError)
    async def duplicate_identity_handler(_request: Request, exc: DuplicateIdentityError) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": "This plate is already registered", "code": "duplicate_plate"},
        )

    @app.exception_handler(UserNotFound)
    async def user_not_found_handler(_request: Request, exc: UserNotFound) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": "User not found", "code": "user_not_found"},
        )

    @app.exception_handler(AnalyticsUnavailable)
    async def analytics_unavailable_handler(_request: Request, exc: AnalyticsUnavailable) -> JSONResponse:
        logger.warning("analytics_unavailable", view=exc.view)
        return JSONResponse(
            status_code=503,
            content={"detail": "Analytics are temporarily unavailable", "code": "analytics_unavailable"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
