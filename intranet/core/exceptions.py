"""
Global exception handling for the application.
Every error leaves the API in the same envelope:
{"success": false, "error": ..., "code": ..., "details": ..., "path": ...}
"""

from typing import Any, Dict, Iterable, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class ValidationException(AppError):
    """Malformed or out-of-range input."""
    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)

    @classmethod
    def from_errors(cls, errors: Iterable[Dict[str, Any]]) -> "ValidationException":
        return cls("Validation failed", {"issues": format_issues(errors)})


class UnauthorizedException(AppError):
    """Authentication failure error."""
    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class ForbiddenException(AppError):
    """Authorization failure error."""
    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


def format_issues(errors: Iterable[Dict[str, Any]]) -> list[Dict[str, str]]:
    """Flatten pydantic error dicts to {"field", "message"} pairs."""
    issues = []
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        loc = [str(part) for part in loc]
        issues.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return issues


def error_response(request: Request, status_code: int, message: str, code: str, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "error": message,
        "code": code,
        "path": request.url.path,
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Application error", path=request.url.path, error=exc.message, code=exc.__class__.__name__)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    response = error_response(request, exc.status_code, exc.message, exc.__class__.__name__, exc.details)
    if headers:
        response.headers.update(headers)
    return response


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """RequestValidationError and bare pydantic ValidationError both map to 400."""
    errors = exc.errors() if hasattr(exc, "errors") else []
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        "ValidationException",
        {"issues": format_issues(errors)},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(request, exc.status_code, str(exc.detail), "HTTPException")


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""
    logger.exception("Unexpected error occurred", path=request.url.path, method=request.method)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        "InternalServerError",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)


def validate_model(model_cls, data: Any):
    """model_validate, re-raised as a 400 ValidationException with field issues."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise ValidationException.from_errors(e.errors()) from e
