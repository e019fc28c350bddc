import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...core.errors import Error, ErrorType, StoreException
from ...core.settings import get_settings
from ...utils.logging import setup_store_logging

logger = setup_store_logging(
    "store_service.error_handler", log_level=get_settings().LOG_LEVEL
)

STATUS_BY_ERROR_TYPE: Dict[ErrorType, int] = {
    ErrorType.VALIDATION: 400,
    ErrorType.NOT_FOUND: 404,
    ErrorType.CONFLICT: 409,
    ErrorType.UNAUTHORIZED: 401,
    ErrorType.FORBIDDEN: 403,
    ErrorType.FAILURE: 500,
}


def status_code_for(error: Error) -> int:
    return STATUS_BY_ERROR_TYPE.get(error.type, 500)


class StoreServiceErrorHandler:
    """Class to setup error handling middleware for the Store Service."""

    @staticmethod
    def setup_error_handlers(app: FastAPI) -> None:
        """Setup error handlers for the FastAPI application."""

        @app.exception_handler(StoreException)
        async def store_exception_handler(  # type: ignore
            request: Request, exc: StoreException
        ) -> JSONResponse:
            """Handle domain and infrastructure errors carrying an ``Error``."""

            error = exc.error
            status_code = status_code_for(error)
            message = error.message
            if status_code >= 500:
                logger.error(
                    "Store failure",
                    extra={
                        "correlation_id": getattr(
                            request.state, "correlation_id", "unknown"
                        ),
                        "code": error.code,
                        "exception_message": error.message,
                        "path": request.url.path,
                    },
                )
                message = "An internal server error occurred"

            return StoreServiceErrorHandler._create_error_response(
                request=request,
                status_code=status_code,
                error_type=error.type.value,
                code=error.code,
                message=message,
            )

        @app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(  # type: ignore
            request: Request, exc: StarletteHTTPException
        ) -> JSONResponse:
            """Handle HTTP exceptions."""

            return StoreServiceErrorHandler._create_error_response(
                request=request,
                status_code=exc.status_code,
                error_type="http_error",
                code=f"Http.{exc.status_code}",
                message=str(exc.detail),
            )

        @app.exception_handler(RequestValidationError)
        async def validation_exception_handler(  # type: ignore
            request: Request, exc: RequestValidationError
        ) -> JSONResponse:
            """Handle request validation errors."""

            error_details: list[dict[str, str]] = []
            for error in exc.errors():
                error_details.append(
                    {
                        "field": ".".join(str(loc) for loc in error["loc"]),
                        "message": error["msg"],
                        "type": error["type"],
                    }
                )

            return StoreServiceErrorHandler._create_error_response(
                request=request,
                status_code=422,
                error_type=ErrorType.VALIDATION.value,
                code="Request.Invalid",
                message="Request validation failed",
                details={"validation_errors": error_details},
            )

        @app.exception_handler(Exception)
        async def general_exception_handler(  # type: ignore
            request: Request, exc: Exception
        ) -> JSONResponse:
            """Handle all uncaught exceptions."""

            logger.error(
                "Unhandled exception occurred",
                extra={
                    "correlation_id": getattr(
                        request.state, "correlation_id", "unknown"
                    ),
                    "user_id": getattr(request.state, "user_id", "anonymous"),
                    "path": request.url.path,
                    "method": request.method,
                    "exception_type": type(exc).__name__,
                    "exception_message": str(exc),
                    "traceback": traceback.format_exc(),
                    "service": "store_service",
                    "event_type": "unhandled_exception",
                },
                exc_info=True,
            )

            return StoreServiceErrorHandler._create_error_response(
                request=request,
                status_code=500,
                error_type=ErrorType.FAILURE.value,
                code="Store.Failure",
                message="An internal server error occurred",
            )

    @staticmethod
    def _create_error_response(
        request: Request,
        status_code: int,
        error_type: str,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""

        correlation_id = getattr(request.state, "correlation_id", "unknown")

        error_response: Dict[str, Any] = {
            "error": {
                "type": error_type,
                "code": code,
                "message": message,
                "correlation_id": correlation_id,
            }
        }

        if details:
            error_response["error"]["details"] = details

        if status_code < 500:
            logger.warning(
                f"Client error: {code}",
                extra={
                    "correlation_id": correlation_id,
                    "user_id": getattr(request.state, "user_id", "anonymous"),
                    "status_code": status_code,
                    "error_type": error_type,
                    "path": request.url.path,
                    "method": request.method,
                    "service": "store_service",
                    "event_type": "client_error",
                },
            )

        return JSONResponse(status_code=status_code, content=error_response)


def setup_store_error_handling(app: FastAPI) -> None:
    """Setup error handling middleware for the Store Service."""

    error_handler = StoreServiceErrorHandler()
    error_handler.setup_error_handlers(app)

    logger.info(
        "Store Service error handling configured",
        extra={"service": "store_service", "event_type": "error_handler_setup"},
    )
