"""
Whispr Social Backend API - Main Application
"""
import logging
import sys
import traceback
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .core.config import get_settings
from .core.exceptions import AlreadyRequested, SocialError
from .core.rate_limit import limiter
from .database import create_db_engine, create_session_factory, init_db
from .api.v1 import api_router
from .schemas.social import FriendRequestResponse
from .services.auth_service import AuthEvent, AuthEvents
from .services.cache import ProfileSnapshotCache
from .utils.time_utils import to_utc_isoformat, utc_now

# Settings are validated here; a missing DATABASE_URL or JWT_SECRET_KEY stops startup
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Whispr Social Backend API...")

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    try:
        init_db(engine)
    except Exception as e:
        logger.error(f"Failed to initialize backend: {e}")
        engine.dispose()
        raise
    logger.info("Database initialized successfully")

    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.profile_cache = ProfileSnapshotCache(ttl_seconds=settings.PROFILE_CACHE_TTL_SECONDS)
    app.state.auth_events = AuthEvents()

    def drop_snapshots_on_sign_out(event: AuthEvent, account_id: uuid.UUID) -> None:
        if event == AuthEvent.SIGNED_OUT:
            app.state.profile_cache.invalidate(account_id)

    app.state.auth_events.subscribe(drop_snapshots_on_sign_out)
    logger.info(f"API running at: http://{settings.API_HOST}:{settings.API_PORT}")

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down Whispr Social Backend API...")
    app.state.auth_events.clear()
    app.state.profile_cache.clear()
    engine.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Whispr social backend: friends, feed, posts, likes and comments",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SocialError)
async def social_error_handler(request: Request, exc: SocialError):
    """Domain errors become a {data, error} pair with the error's status code."""
    data = exc.data
    if isinstance(exc, AlreadyRequested):
        data = FriendRequestResponse.model_validate(exc.request)
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.code,
            "detail": exc.message,
            "data": jsonable_encoder(data)
        }
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Anything that is not a SocialError: log it under a short id and answer 500."""
    error_id = uuid.uuid4().hex[:8]
    logger.error(f"[{error_id}] Unhandled {type(exc).__name__} on {request.method} {request.url.path}", exc_info=True)

    content = {
        "success": False,
        "error": "internal_error",
        "detail": "Something went wrong on our side. Please try again later.",
        "error_id": error_id
    }
    if settings.DEBUG:
        # Only debug builds expose internals
        content.update(detail=str(exc), type=type(exc).__name__, traceback=traceback.format_exc())
    return JSONResponse(status_code=500, content=content)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.PROJECT_NAME,
        "version": "1.0.0",
        "status": "running",
        "environment": settings.ENVIRONMENT,
        "docs_url": "/docs" if settings.DEBUG else "disabled",
        "features": [
            "Email/password auth with JWT sessions",
            "Friend requests",
            "Friends feed",
            "Likes and comments",
            "Profiles and search"
        ]
    }


# Health check endpoint
@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    try:
        with request.app.state.engine.connect() as connection:
            connection.exec_driver_sql("SELECT 1")

        return {
            "status": "healthy",
            "timestamp": to_utc_isoformat(utc_now()),
            "service": "whispr-social-api",
            "version": "1.0.0",
            "services": {
                "database": {"status": "connected"},
                "profile_cache": {"entries": len(request.app.state.profile_cache)}
            }
        }

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e)
        }


# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)

