"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from face_attendance.api.attendance import router as attendance_router
from face_attendance.api.employees import router as employees_router
from face_attendance.app_logging import configure_logging
from face_attendance.containers import AppContainer
from face_attendance.domain.errors import (
    DuplicateEmployeeError,
    EmbeddingError,
    EmployeeNotFoundError,
    InconsistentStateError,
    InvalidInputError,
    ModelUnavailableError,
    StorageTimeoutError,
    StorageUnavailableError,
)

_ERROR_STATUS: dict[type[Exception], int] = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    EmployeeNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateEmployeeError: status.HTTP_409_CONFLICT,
    InconsistentStateError: status.HTTP_409_CONFLICT,
    EmbeddingError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ModelUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageTimeoutError: status.HTTP_504_GATEWAY_TIMEOUT,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.open_resources()
        except Exception:
            logger.exception("Failed to open embedding provider")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
        status_code = _ERROR_STATUS[_error_type(exc)]
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.exception("Request failed", extra={"path": request.url.path})
        elif isinstance(exc, InconsistentStateError):
            logger.error(
                "Inconsistent attendance state",
                extra={"path": request.url.path, "detail": str(exc)},
            )
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    for error_type in _ERROR_STATUS:
        app.add_exception_handler(error_type, domain_error_handler)

    app.include_router(employees_router)
    app.include_router(attendance_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/db/status")
    async def db_status(request: Request) -> JSONResponse:
        """Report whether the employee store is reachable."""
        state_container: AppContainer = request.app.state.container
        try:
            employees = state_container.employee_service.list_employees()
        except StorageUnavailableError:
            logger.exception("Database status check failed")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "Database connection failed"},
            )
        return JSONResponse(
            content={
                "status": "Database connection successful",
                "employees": len(employees),
            }
        )

    return app


def _error_type(exc: Exception) -> type[Exception]:
    """Return the most specific registered error type for ``exc``."""
    for klass in type(exc).__mro__:
        if klass in _ERROR_STATUS:
            return klass
    raise exc
