"""FastAPI application factory and boundary error handling."""

import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fx_deal_system.api.routes import deal_router
from fx_deal_system.config import get_settings
from fx_deal_system.container import get_container, reset_container
from fx_deal_system.exceptions import FXDealSystemError, RequestValidationFailedError
from fx_deal_system.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."
REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the deal store before serving and close it on shutdown."""
    settings = get_settings()
    configure_logging(settings)

    container = get_container()
    logger.info(
        "deal_api_starting",
        version=settings.app_version,
        environment=settings.environment.value,
        database_type=settings.database_type.value,
        transactions=settings.use_transactions,
    )
    logger.info("deal_store_ready", deals=container.deal_repository.count())

    try:
        yield
    finally:
        reset_container()
        logger.info("deal_api_stopped")


async def log_request_middleware(request: Request, call_next) -> Response:
    """Tag every event of a request with its id, path and method."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
    bind_context(request_id=request_id, path=request.url.path, method=request.method)
    started = time.perf_counter()

    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "request_handled",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response
    finally:
        clear_context()


def _describe_validation_error(err: dict[str, Any]) -> tuple[str, str]:
    """Turn one pydantic error into a (field, reason) pair.

    Reasons read "<field> is required", "<field> must be 3 letters" and so
    on, with the field named by its wire alias.
    """
    loc = [str(part) for part in err["loc"] if part != "body"]
    field = ".".join(loc) or "body"
    name = loc[-1] if loc else "body"
    error_type = err["type"]
    ctx = err.get("ctx") or {}

    if error_type == "missing" or (
        err.get("input") is None and error_type.endswith("_type")
    ):
        return field, f"{name} is required"
    if error_type == "string_too_short" and ctx.get("min_length") == 1:
        return field, f"{name} is required"
    if error_type == "string_too_short":
        return field, f"{name} must be {ctx['min_length']} letters"
    if error_type == "string_too_long":
        return field, f"{name} must be {ctx['max_length']} letters"
    if error_type == "greater_than":
        return field, f"{name} must be greater than {ctx['gt']}"
    if error_type == "value_error" and "error" in ctx:
        return field, f"{name} {ctx['error']}"
    return field, err["msg"]


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request shape failures as a field -> reason map with status 400."""
    messages: dict[str, str] = {}
    for err in exc.errors():
        field, reason = _describe_validation_error(err)
        messages.setdefault(field, reason)

    error = RequestValidationFailedError(messages)
    logger.warning("request_validation_failed", messages=messages)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def exception_handler(request: Request, exc: FXDealSystemError) -> JSONResponse:
    """Render a deal system error with the status and title its class carries."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "request_rejected",
        error=exc.title,
        error_code=exc.error_code,
        reason=exc.message,
        **exc.context,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the failure, return a generic 500 with no detail."""
    logger.exception("unhandled_exception", error_type=type(exc).__name__)
    error = FXDealSystemError(GENERIC_ERROR_MESSAGE)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Validates, deduplicates and stores foreign-exchange deals",
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.middleware("http")(log_request_middleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(FXDealSystemError, exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(deal_router)

    return app


# Create app instance for uvicorn
app = create_app()
