"""
Projectify - Main Application

FastAPI backend with:
- MongoDB for users, projects and applications
- JWT authentication (admin / user roles)
- Background email notifications on approval decisions

Run: uvicorn projectify.main:create_app --factory --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from projectify import __version__
from projectify.api.routes import api_router
from projectify.core.config import Settings, get_settings
from projectify.core.errors import ProjectifyError, UnexpectedError
from projectify.core.logger import setup_logger
from projectify.db.mongodb import create_mongo_client, get_mongo_db, init_mongo_indexes, test_mongo_connection
from projectify.schemas.schemas import HealthResponse
from projectify.services.email_client import SmtpMailer
from projectify.services.notifications import Mailer, NotificationDispatcher

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure to ``{"success": false, "message": ...}``."""

    @app.exception_handler(ProjectifyError)
    async def projectify_error_handler(request: Request, exc: ProjectifyError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        detail = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Validation error", "error": detail},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(PyMongoError)
    async def database_error_handler(request: Request, exc: PyMongoError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content=UnexpectedError().to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content=UnexpectedError().to_dict())


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """
    Build the application with explicit collaborators.

    Args:
        settings: Defaults to ``get_settings()`` (environment / .env)
        database: Mongo database handle; a client is created from settings if omitted
        mailer: Anything with ``send(to, subject, html)``; defaults to SMTP
    """
    settings = settings or get_settings()
    setup_logger(level=settings.log_level, log_format=settings.log_format)

    client = None
    if database is None:
        client = create_mongo_client(settings)
        database = get_mongo_db(client, settings)

    notifier = NotificationDispatcher(
        mailer or SmtpMailer(settings), maxsize=settings.notification_queue_size
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            init_mongo_indexes(database)
        except PyMongoError as e:
            logger.warning("MongoDB index initialization failed: %s", e)
        notifier.start()

        yield

        notifier.stop()
        if client is not None:
            client.close()

    app = FastAPI(
        title="Projectify",
        description="""
        Project application tracker.

        ## Features
        - **Authentication**: JWT-based auth for admins and users
        - **Projects**: Admins post, approve, reject and delete projects
        - **Applications**: Users apply to approved projects; admins decide
        - **Analytics**: Dashboard counts and monthly application trends
        """,
        version=__version__,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.notifier = notifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.info(
            "%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration_ms,
            extra={
                "event": "http_request",
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check():
        """Liveness plus a MongoDB ping."""
        connected = test_mongo_connection(app.state.db)
        return HealthResponse(
            status="healthy" if connected else "degraded",
            mongodb="connected" if connected else "disconnected",
        )

    return app

