# =======================================================================================
# gatekeeper/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
import time
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .api.rate_limit import RateLimiter, rate_limit_middleware
from .api.routes.admin import router as admin_router
from .api.routes.auth import router as auth_router
from .api.routes.supervisor import router as supervisor_router
from .api.routes.sync import router as sync_router
from .config import Config, config as default_config
from .database import DatabaseManager
from .logging_config import setup_logging
from .models.schemas import HealthResponse
from .services import (
    AccessControlService,
    AuthService,
    CredentialVerifier,
    ExportService,
    SyncService,
    TokenService,
    UserService,
)
from .store import DirectoryStore, SqlDirectoryStore
from .utils.exceptions import GatekeeperError, InternalError
from .workers import LimiterCleanupWorker

logger = logging.getLogger(__name__)


def build_services(app: FastAPI, settings: Config, store: DirectoryStore) -> None:
    """Wire one instance of every service onto app.state."""
    credentials = CredentialVerifier(min_length=settings.PASSWORD_MIN_LENGTH)
    tokens = TokenService(
        secret_key=settings.JWT_SECRET,
        access_ttl=settings.JWT_EXPIRATION,
        refresh_ttl=settings.REFRESH_TOKEN_EXPIRATION,
        algorithm=settings.JWT_ALGORITHM,
        issuer=settings.JWT_ISSUER,
    )
    access = AccessControlService(store)

    app.state.settings = settings
    app.state.store = store
    app.state.auth_service = AuthService(store, credentials, tokens)
    app.state.sync_service = SyncService(store, access)
    app.state.user_service = UserService(store, access, credentials)
    app.state.export_service = ExportService()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatekeeperError)
    async def gatekeeper_error_handler(request: Request, exc: GatekeeperError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request body", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content={"detail": error.message})


def create_app(settings: Optional[Config] = None, store: Optional[DirectoryStore] = None) -> FastAPI:
    """
    Build the API. With no store given, a SQL store is created from
    settings.DB_URL and its schema is created on startup.
    """
    settings = settings or default_config
    settings.validate()
    setup_logging(settings.LOG_LEVEL)

    db: Optional[DatabaseManager] = None
    if store is None:
        db = DatabaseManager(settings)
        store = SqlDirectoryStore(db)

    app = FastAPI(
        title="GateKeeper API",
        version=__version__,
        description="Offline-first checkpoint entry logging with role-scoped sync",
        debug=settings.API_DEBUG,
    )
    build_services(app, settings, store)
    register_exception_handlers(app)

    limiter = RateLimiter(settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW)
    cleanup_worker = LimiterCleanupWorker(limiter, settings.RATE_LIMIT_CLEANUP_INTERVAL)
    app.state.limiter = limiter
    app.state.cleanup_worker = cleanup_worker

    if settings.RATE_LIMIT_ENABLED:
        app.middleware("http")(rate_limit_middleware(limiter))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(sync_router, prefix="/api", tags=["sync"])
    app.include_router(admin_router, prefix="/api", tags=["admin"])
    app.include_router(supervisor_router, prefix="/api", tags=["supervisor"])

    def health() -> HealthResponse:
        database = store.ping()
        return HealthResponse(
            status="healthy" if database else "degraded",
            timestamp=int(time.time()),
            version=__version__,
            database=database,
        )

    app.add_api_route("/health", health, methods=["GET"], response_model=HealthResponse, tags=["health"])
    app.add_api_route("/api/health", health, methods=["GET"], response_model=HealthResponse, tags=["health"])

    @app.on_event("startup")
    async def startup_event():
        if db is not None:
            db.init_schema()
        cleanup_worker.start()
        logger.info("GateKeeper API %s started (%s)", __version__, settings.ENVIRONMENT)

    @app.on_event("shutdown")
    async def shutdown_event():
        cleanup_worker.stop()
        if db is not None:
            db.dispose()
        logger.info("GateKeeper API stopped")

    return app


app = create_app()
