"""
Main FastAPI application entry point.
"""
import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from .core.config import Settings, settings as default_settings
from .core.logging import configure_logging, get_logger
from .db.session import Database
from .services.email import Mailer
from .services.object_storage import object_storage_for_user
from .services.realtime import CalendarBroadcaster
from .api.v1 import admin, attachments, auth, calendar, experiments, notes, projects, reports, search, users

# Initialize logger
logger = get_logger(__name__)

API_VERSION = "1.0.0"


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def create_app(
    settings: Optional[Settings] = None,
    mailer=None,
    object_storage_factory: Optional[Callable] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (defaults to the environment-driven instance)
        mailer: Object with the Mailer coroutine API (defaults to SMTP)
        object_storage_factory: user -> ObjectStorage | None (defaults to the user's S3 settings)
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_DIR, settings.LOG_LEVEL)
    logger.info("Starting application initialization...")

    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            database.create_all()
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}", exc_info=True)
            raise
        yield
        database.dispose()

    app = FastAPI(
        title="Lab Notebook API",
        version=API_VERSION,
        description="Projects, experiments, notes, attachments, calendar and PDF reports",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.mailer = mailer or Mailer(settings)
    app.state.object_storage_factory = object_storage_factory or object_storage_for_user
    app.state.broadcaster = CalendarBroadcaster()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Log every request at INFO so runtime activity is visible in terminal.
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "Request failed | %s %s | elapsed_ms=%.1f",
                request.method,
                request.url.path,
                elapsed_ms,
            )
            return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred"})

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Request | %s %s | status=%s | elapsed_ms=%.1f",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [{"field": _field_name(e.get("loc", ())), "message": e.get("msg", "")} for e in exc.errors()]
        logger.warning(f"Validation error | {request.method} {request.url.path} | fields: {[e['field'] for e in errors]}")
        return JSONResponse(status_code=400, content={"detail": "Validation error", "errors": errors})

    @app.exception_handler(DBAPIError)
    async def database_exception_handler(request: Request, exc: DBAPIError):
        logger.error(f"Database error | {request.method} {request.url.path} | {type(exc.orig).__name__}", exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Database error"})

    # Register routers
    for module in (auth, users, admin, projects, experiments, notes, attachments, reports, calendar, search):
        app.include_router(module.router)
    app.include_router(calendar.ws_router)

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": "Lab Notebook API",
            "version": API_VERSION,
            "status": "running"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    logger.info("FastAPI application initialized successfully")
    return app


app = create_app()
