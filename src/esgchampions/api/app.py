"""FastAPI app factory"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.config.settings import ChampionsConfig, get_config
from ..core.errors import (
    ChampionsError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    StoreUnavailableError,
    ValidationError,
)
from ..core.identity import LocalIdentityProvider
from ..core.services import ReadStateCache
from ..core.storage.database import Database, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown events for the FastAPI application.
    """
    # Startup
    if app.state.config is None:
        app.state.config = get_config()

    owns_db = app.state.db is None
    if owns_db:
        app.state.db = init_db(app.state.config.get_database_url())
    await app.state.db.create_tables()

    logger.info("ESG Champions API started")

    yield

    # Shutdown
    if owns_db:
        await app.state.db.close()
    logger.info("ESG Champions API stopped")


def create_app(
    db: Optional[Database] = None,
    config: Optional[ChampionsConfig] = None,
) -> FastAPI:
    """Create FastAPI application.

    Args:
        db: Database to serve from. When omitted, one is created from the
            configuration on startup.
        config: Configuration; defaults to the global one

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="ESG Champions API",
        description="Review submission and moderation workflow for ESG indicator panels",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.db = db
    app.state.config = config
    app.state.identity = LocalIdentityProvider()
    app.state.read_state = ReadStateCache(config.read_state_limit) if config else ReadStateCache()
    app.state.read_state.bind(app.state.identity)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register routes
    from .routes import (
        catalog,
        discussion,
        moderation,
        notifications,
        progress,
        scores,
        submissions,
        votes,
    )

    app.include_router(catalog.router, tags=["catalog"])
    app.include_router(submissions.router, tags=["submissions"])
    app.include_router(discussion.router, tags=["discussion"])
    app.include_router(moderation.router, prefix="/admin", tags=["moderation"])
    app.include_router(notifications.router, tags=["notifications"])
    app.include_router(progress.router, tags=["progress"])
    app.include_router(scores.router, tags=["scores"])
    app.include_router(votes.router, tags=["votes"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "service": "esgchampions"}

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map the engine's error taxonomy onto HTTP responses."""

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": exc.message})

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": exc.message})

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied(request: Request, exc: PermissionDeniedError):
        return JSONResponse(status_code=403, content={"detail": exc.message})

    @app.exception_handler(ConflictError)
    async def conflict(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409,
            content={"detail": exc.message, "existing_id": exc.existing_id},
        )

    @app.exception_handler(InvalidStateError)
    async def invalid_state(request: Request, exc: InvalidStateError):
        return JSONResponse(status_code=409, content={"detail": exc.message})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.error(f"Store unavailable while handling {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Store temporarily unavailable"})

    @app.exception_handler(ChampionsError)
    async def champions_error(request: Request, exc: ChampionsError):
        logger.error(f"Unhandled engine error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": exc.message})


# For `uvicorn esgchampions.api.app:app`
app = create_app()
