from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
import logging
from typing import Sequence, Any

from app.schemas.result import Error, Result, ErrorCategory
from app.core.exception import CustomException

logger = logging.getLogger(__name__)


class ExceptionHandlingMiddleware(BaseHTTPMiddleware):
    """
    Centralized exception handling for consistent API responses.

    FastAPI resolves HTTP and request-validation exceptions before they reach
    a middleware, so ``install`` also registers the same handlers on the app.
    Anything still escaping the router lands in ``dispatch`` and becomes an
    opaque 500.
    """

    def __init__(self, app, log_internal_errors: bool = True):
        super().__init__(app)
        self.log_internal_errors = log_internal_errors
        self._register_handlers()

    def _register_handlers(self):
        """Register exception type to handler method mappings"""
        self.EXCEPTION_HANDLERS = {
            CustomException: self._handle_custom_exception,
            ValidationError: self._handle_validation_error,
            RequestValidationError: self._handle_validation_error,
            ResponseValidationError: self._handle_validation_error,
            StarletteHTTPException: self._handle_http_exception,
        }

    @classmethod
    def install(cls, app: FastAPI, log_internal_errors: bool = True) -> None:
        """Add the middleware and route app-level exception handlers through it."""
        app.add_middleware(cls, log_internal_errors=log_internal_errors)
        handler = cls(None, log_internal_errors=log_internal_errors)
        for exc_type in handler.EXCEPTION_HANDLERS:
            app.add_exception_handler(exc_type, handler._handle_exception)

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as ex:
            return await self._handle_exception(request, ex)

    async def _handle_exception(self, request: Request, ex: Exception) -> JSONResponse:
        """Route exception to the appropriate handler."""
        for exc_type, handler in self.EXCEPTION_HANDLERS.items():
            if isinstance(ex, exc_type):
                return await handler(ex, request)

        # Default to internal server error
        return await self._handle_unhandled_exception(ex, request)

    async def _handle_custom_exception(
        self, ex: CustomException, request: Request
    ) -> JSONResponse:
        """Handle custom application exceptions"""
        error = Error.of(
            message=ex.detail, status_code=ex.status_code, category=ex.category
        )
        return self._create_error_response(error, headers=ex.headers)

    async def _handle_validation_error(
        self,
        ex: ValidationError | RequestValidationError | ResponseValidationError,
        request: Request,
    ) -> JSONResponse:
        """Handle Pydantic validation errors"""
        if isinstance(ex, ResponseValidationError):
            # A response that fails its own schema is a server bug
            return await self._handle_unhandled_exception(ex, request)

        validation_message = self._format_validation_error(ex.errors())
        error = Error.of(
            message=validation_message,
            status_code=422,
            category=ErrorCategory.VALIDATION,
        )
        return self._create_error_response(error)

    async def _handle_http_exception(
        self, ex: StarletteHTTPException, request: Request
    ) -> JSONResponse:
        """Handle FastAPI HTTP exceptions"""
        category = self._infer_category_from_status(ex.status_code)

        error = Error.of(
            message=ex.detail if isinstance(ex.detail, str) else str(ex.detail),
            status_code=ex.status_code,
            category=category,
        )
        return self._create_error_response(error, headers=getattr(ex, "headers", None))

    async def _handle_unhandled_exception(
        self, ex: Exception, request: Request
    ) -> JSONResponse:
        """Handle unexpected exceptions"""
        if self.log_internal_errors:
            logger.error(
                f"Unhandled exception on {request.method} {request.url.path}",
                exc_info=ex,
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client": request.client.host if request.client else None,
                },
            )

        # Don't expose internal error details in production
        error = Error.of(
            message="An unexpected error occurred. Please try again later.",
            status_code=500,
            category=ErrorCategory.INTERNAL,
        )
        return self._create_error_response(error)

    def _create_error_response(self, error: Error, headers: dict | None = None) -> JSONResponse:
        """Create standardized JSON error response"""
        return JSONResponse(
            status_code=error.status_code,
            content=Result.failure(error).model_dump(),
            headers=headers,
        )

    def _format_validation_error(self, errors: Sequence[Any]) -> str:
        """Format validation errors into human-readable message"""
        messages = []
        for error in errors:
            loc = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            error_type = error.get("type", "unknown")

            messages.append(f"Error in {loc}: {msg} (type: {error_type})")

        return "; ".join(messages) if messages else "Validation failed"

    def _infer_category_from_status(self, status_code: int) -> ErrorCategory:
        """Infer error category from HTTP status code"""
        status_category_map = {
            401: ErrorCategory.AUTHENTICATION,
            403: ErrorCategory.AUTHORIZATION,
            404: ErrorCategory.NOT_FOUND,
            409: ErrorCategory.RESOURCE_CONFLICT,
            422: ErrorCategory.VALIDATION,
        }
        if status_code in status_category_map:
            return status_category_map[status_code]
        elif 400 <= status_code < 500:
            return ErrorCategory.BAD_REQUEST
        elif status_code >= 500:
            return ErrorCategory.INTERNAL
        else:
            return ErrorCategory.CUSTOM
