import logging
import traceback

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class AppError(Exception):
    def __init__(self, message: str, status_code: int = 400, detail: str | None = None):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.message)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", detail: str | None = None):
        super().__init__(message=message, status_code=404, detail=detail)


class ValidationError(AppError):
    def __init__(self, message: str = "Validation error", detail: str | None = None):
        super().__init__(message=message, status_code=422, detail=detail)


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id: str, detail: str | None = None):
        self.session_id = session_id
        super().__init__(message=f"Session '{session_id}' not found", detail=detail)


class ConnectionNotFoundError(NotFoundError):
    def __init__(self, connection_id: str):
        self.connection_id = connection_id
        super().__init__(message=f"Connection '{connection_id}' not found")


class TableNotFoundError(NotFoundError):
    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(message=f"Table {table_name} not found")


class UnsupportedBackendError(AppError):
    def __init__(self, backend_kind: str):
        self.backend_kind = backend_kind
        super().__init__(message=f"Unsupported database type: {backend_kind}", status_code=400)


class ExplorationError(AppError):
    """An exploration was aborted. ``cause`` is the underlying driver error, if any."""

    label = "exploration failed"

    def __init__(
        self,
        backend_kind: str,
        cause: BaseException | str | None = None,
        status_code: int = 502,
    ):
        self.backend_kind = backend_kind
        self.cause = cause
        detail = str(cause) if cause is not None else None
        super().__init__(
            message=f"{backend_kind} {self.label}",
            status_code=status_code,
            detail=detail,
        )


class BackendConnectionError(ExplorationError):
    label = "connection failed"


class InvalidURLError(ExplorationError):
    label = "URL is invalid"

    def __init__(self, backend_kind: str, cause: BaseException | str | None = None):
        super().__init__(backend_kind, cause, status_code=422)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except AppError as e:
            logger.warning("Application error: %s (detail: %s)", e.message, e.detail)
            return JSONResponse(
                status_code=e.status_code,
                content={"error": e.message, "detail": e.detail},
            )
        except Exception as e:
            logger.error("Unhandled error: %s\n%s", str(e), traceback.format_exc())
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "detail": None},
            )
