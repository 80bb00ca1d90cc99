"""Error taxonomy shared by the API routers."""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


class RoutineApiError(Exception):
    """Base exception carrying the HTTP status it maps to"""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Any] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class InvalidRequestError(RoutineApiError):
    """Malformed request body or query"""
    status_code = 400


class NotFoundError(RoutineApiError):
    """Requested entity does not exist"""
    status_code = 404


class PreconditionError(RoutineApiError):
    """Entity exists but is not in a runnable state (integration disabled, bad config)"""
    status_code = 400


class UnavailableError(RoutineApiError):
    """Backend not reachable or not configured"""
    status_code = 503


class UnexpectedError(RoutineApiError):
    """Anything else"""
    status_code = 500


def error_body(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return body


def error_response(exc: RoutineApiError) -> JSONResponse:
    """Render a RoutineApiError as the standard JSON envelope."""
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))
