"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.api.routes import (
    attendance_router,
    health_router,
    leave_router,
    payroll_router,
)
from attendance_payroll.clock import Clock
from attendance_payroll.config import Settings, configure_logging, get_settings
from attendance_payroll.database import dispose_db, init_db
from attendance_payroll.errors import (
    AttendanceStateError,
    DataInconsistencyError,
    EmployeeNotFoundError,
    InsufficientLeaveCreditError,
    LeaveConflictError,
    LeaveNotFoundError,
    LeaveRequestError,
)
from attendance_payroll.holidays import HolidayCalendar
from attendance_payroll.notifications import NotificationDispatcher
from attendance_payroll.services import InvalidTransitionError

logger = logging.getLogger(__name__)

# Domain error -> (HTTP status, error code)
ERROR_STATUS: list[tuple[type[Exception], int, str]] = [
    (EmployeeNotFoundError, status.HTTP_404_NOT_FOUND, "EMPLOYEE_NOT_FOUND"),
    (LeaveNotFoundError, status.HTTP_404_NOT_FOUND, "LEAVE_NOT_FOUND"),
    (AttendanceStateError, status.HTTP_409_CONFLICT, "ATTENDANCE_STATE"),
    (InvalidTransitionError, status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    (LeaveConflictError, status.HTTP_409_CONFLICT, "LEAVE_CONFLICT"),
    (InsufficientLeaveCreditError, status.HTTP_409_CONFLICT, "INSUFFICIENT_LEAVE_CREDIT"),
    (LeaveRequestError, status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_LEAVE_REQUEST"),
    (DataInconsistencyError, status.HTTP_422_UNPROCESSABLE_ENTITY, "DATA_INCONSISTENCY"),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    configure_logging()
    owns_engine = getattr(app.state, "session_factory", None) is None
    if owns_engine:
        _, app.state.session_factory = init_db()
    yield
    # Shutdown
    if owns_engine:
        await dispose_db()


def _domain_error_handler(status_code: int, code: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "code": code},
        )

    return handler


def _register_error_handlers(app: FastAPI) -> None:
    for exc_class, status_code, code in ERROR_STATUS:
        app.add_exception_handler(exc_class, _domain_error_handler(status_code, code))

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    clock: Clock | None = None,
    dispatcher: NotificationDispatcher | None = None,
    holiday_calendar: HolidayCalendar | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators left as None are built from settings on first use.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="Attendance Payroll API",
        description="Attendance reconciliation and semi-monthly payroll",
        version=settings.engine_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.clock = clock
    app.state.dispatcher = dispatcher
    app.state.holiday_calendar = holiday_calendar

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_router, prefix="/api/v1")
    app.include_router(attendance_router, prefix="/api/v1")
    app.include_router(leave_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
