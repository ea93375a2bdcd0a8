"""FastAPI application factory.

Run with:
    uvicorn frontdesk.api.app:create_app --factory
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from frontdesk import __version__
from frontdesk.api.dependencies import get_settings
from frontdesk.api.middleware.context import RequestContextMiddleware
from frontdesk.api.models.errors import ErrorBody, ErrorDetail, ErrorResponse
from frontdesk.api.routes import register_routes
from frontdesk.errors import ErrorCode, FrontDeskError
from frontdesk.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Application with logging, middleware, exception handlers and
        routes registered
    """
    settings = get_settings()
    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level, format=log_config.format, redact_pii=log_config.redact_pii
    )

    app = FastAPI(
        title="frontdesk API",
        description="Call-turn routing and tenant policy compilation",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)
    register_routes(app)

    logger.info("app_created", debug=settings.debug, backend=settings.storage.backend)
    return app


def _validation_response(errors: list[dict], message: str) -> JSONResponse:
    details = [
        ErrorDetail(field=".".join(str(loc) for loc in error["loc"]), message=error["msg"])
        for error in errors
    ]
    body = ErrorBody(code=ErrorCode.INVALID_REQUEST, message=message, details=details)
    return JSONResponse(status_code=400, content=ErrorResponse(error=body).model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """Map library and validation errors onto the ErrorResponse envelope.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(FrontDeskError)
    async def frontdesk_error_handler(request: Request, exc: FrontDeskError) -> JSONResponse:
        logger.warning(
            "api_error",
            error_code=exc.error_code.value,
            message=exc.message,
            path=request.url.path,
        )
        body = ErrorBody(code=exc.error_code, message=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=body).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("validation_error", errors=exc.errors(), path=request.url.path)
        return _validation_response(list(exc.errors()), "Request validation failed")

    @app.exception_handler(ValidationError)
    async def pydantic_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning("pydantic_validation_error", errors=exc.errors(), path=request.url.path)
        return _validation_response(list(exc.errors()), "Data validation failed")

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        body = ErrorBody(code=ErrorCode.INTERNAL_ERROR, message="An unexpected error occurred")
        return JSONResponse(
            status_code=500, content=ErrorResponse(error=body).model_dump(mode="json")
        )


def main() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(), host=settings.api.host, port=settings.api.port)
