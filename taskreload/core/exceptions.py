"""
Domain exceptions and application-level exception handlers
Every error leaves the API in the same envelope: {"success": false, "data": null, "error": "..."}
Reference: https://fastapi.tiangolo.com/tutorial/handling-errors/
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class TaskNotFoundError(Exception):
    """
    Exception raised when no task row matches the requested ID
    """
    def __init__(self, task_id: int):
        self.task_id = task_id
        self.message = f"Task with ID {task_id} not found"
        super().__init__(self.message)


class StorageError(Exception):
    """
    Exception raised when the database fails (connectivity, constraint, driver error)
    The original SQLAlchemy error is chained as __cause__
    """
    def __init__(self, message: str = "Database operation failed"):
        self.message = message
        super().__init__(self.message)


def error_response(message: str, status_code: int) -> JSONResponse:
    """
    Build the error envelope

    Args:
        message: User-visible error message
        status_code: HTTP status code

    Returns:
        JSONResponse with success=false and data=null
    """
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "data": None, "error": message},
    )


def validation_message(request: Request, exc: RequestValidationError) -> str:
    """
    Pick the user-visible message for a request that failed validation

    Path errors are always a bad task id, query errors a bad filter,
    body errors depend on whether the task is being created or updated.
    """
    locations = {error["loc"][0] for error in exc.errors() if error.get("loc")}
    if "path" in locations:
        return "invalid task id"
    if "query" in locations:
        return "invalid filter parameters"
    if request.method == "PUT":
        return "invalid update data"
    return "invalid task data"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register envelope-rendering exception handlers on the app

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "request failed"
        # Unknown routes and unsupported methods come through here as well
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "resource not found"
        elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            message = "method not allowed"
        return error_response(message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Don't leak pydantic details to the caller, keep them in the log
        logger.debug(f"Request validation failed on {request.method} {request.url.path}: {exc.errors()}")
        return error_response(validation_message(request, exc), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
            exc_info=exc,
        )
        return error_response("internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
