"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import register_exception_handlers
from app.api.routes.auth import router as auth_router
from app.api.routes.contest_votes import router as contest_votes_router
from app.api.routes.oauth import router as oauth_router
from app.api.routes.two_factor import router as two_factor_router
from app.core.config import settings
from app.core.encryption import get_encryption_key
from app.core.rate_limit import limiter
from app.db.migrations import run_migrations
from app.db.session import verify_connection


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    try:
        logger.info("Startup: validating encryption key")
        get_encryption_key()

        logger.info("Startup: verifying database connection")
        verify_connection()
        logger.info("Startup: database connection verified")
        app.state.database_url = settings.database_url

        logger.info("Startup: running database migrations")
        try:
            run_migrations()
            logger.info("Startup: migrations completed")
        except Exception as migration_exc:
            logger.error("Startup: migration failed", exc_info=True)
            raise migration_exc
    except Exception:  # pragma: no cover - logging only
        logger.error("Startup failure", exc_info=True)
        raise

    yield

    logger.info("Shutdown: application stopping")


logger.info("Creating FastAPI application instance")
app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

logger.info("Configuring CORS middleware")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Server is running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


logger.info("Registering API routers")
app.include_router(auth_router, prefix="/api")
app.include_router(two_factor_router, prefix="/api")
app.include_router(oauth_router, prefix="/api")
app.include_router(contest_votes_router, prefix="/api")
logger.info("Routers registered; application ready to accept requests")
