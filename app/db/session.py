"""Database engine, session factory and startup probe."""

import logging
import time
from collections.abc import Generator
from typing import Any, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict[str, Any]:
    if make_url(database_url).get_backend_name() == "sqlite":
        # Request handlers and background tasks may share a connection across threads.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, future=True, **_engine_options(settings.database_url))
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    future=True,
)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped database session."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def verify_connection(
    max_attempts: Optional[int] = None,
    delay_seconds: Optional[float] = None,
) -> None:
    """Block until ``SELECT 1`` succeeds, retrying with linear backoff.

    Attempts and base delay default to ``DATABASE_CONNECT_ATTEMPTS`` and
    ``DATABASE_CONNECT_DELAY_SECONDS``. The last database error is re-raised
    once every attempt has failed.
    """

    attempts = max_attempts if max_attempts is not None else settings.database_connect_attempts
    delay = delay_seconds if delay_seconds is not None else settings.database_connect_delay_seconds

    last_exc: SQLAlchemyError | None = None
    for attempt in range(1, attempts + 1):
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            last_exc = exc
            logger.warning(
                "Database not ready (attempt %d/%d): %s",
                attempt,
                attempts,
                type(exc).__name__,
            )
            time.sleep(delay * attempt)
            continue

        if attempt > 1:
            logger.info("Database reachable after %d attempt(s)", attempt)
        return

    logger.error("Giving up on the database after %d attempts", attempts, exc_info=last_exc)
    if last_exc is None:
        raise RuntimeError("Database connection verification failed")
    raise last_exc


__all__ = ["engine", "SessionLocal", "get_db", "verify_connection"]
