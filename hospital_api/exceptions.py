"""
Domain exception taxonomy and the FastAPI handlers that render it.

Services raise these typed errors; the handlers registered here translate
them into JSON responses carrying the error's status code.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

# Set up logging
logger = logging.getLogger(__name__)

class AppException(Exception):
    """
    Base exception class for application-specific exceptions.
    """
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class NotFoundError(AppException):
    """Raised when a referenced entity does not exist."""
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationError(AppException):
    """Raised for malformed time windows, out-of-range scores and similar input."""
    def __init__(self, detail: str = "Validation failed"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class ConflictError(AppException):
    """Raised when a write would break a uniqueness rule."""
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class CapacityExceededError(AppException):
    """Raised when no appointment slot remains on a schedule date."""
    def __init__(self, detail: str = "No appointment slots remain"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidStateTransitionError(AppException):
    """Raised for an appointment status change the state machine forbids."""
    def __init__(self, current_status, target_status, detail: str = None):
        current = getattr(current_status, "value", current_status)
        target = getattr(target_status, "value", target_status)
        self.current_status = current_status
        self.target_status = target_status
        message = detail or f"Cannot change appointment status from {current} to {target}"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=message)


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.
    
    Args:
        request: The request that caused the exception
        exc: The exception instance
        
    Returns:
        JSONResponse: Standardized error response
    """
    logger.error(f"Application error on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.
    
    Args:
        request: The request that caused the exception
        exc: The validation exception instance
        
    Returns:
        JSONResponse: Standardized error response with validation details
    """
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "errors": jsonable_errors(exc)
        }
    )


def jsonable_errors(exc: RequestValidationError):
    """Strip non-serializable context (e.g. raised exceptions) from pydantic errors."""
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.
    
    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
