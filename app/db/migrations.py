"""Utilities for running Alembic migrations from application code."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from app.core.config import settings

logger = logging.getLogger(__name__)


def _alembic_config() -> Config:
    """Build an Alembic config wired to the runtime settings."""

    project_root = Path(__file__).resolve().parents[2]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def run_migrations() -> None:
    """Upgrade the schema to the latest revision unless it is already there."""

    # Import here to avoid circular dependency
    from app.db.session import engine as app_engine

    # Pooled app connections would block DDL on the tables they touched.
    app_engine.dispose()

    cfg = _alembic_config()
    head = ScriptDirectory.from_config(cfg).get_current_head()

    try:
        with app_engine.connect() as connection:
            current_rev = MigrationContext.configure(connection).get_current_revision()
    except Exception as exc:
        logger.warning("Unable to read current revision: %s, proceeding with upgrade", exc)
        current_rev = None

    if current_rev is not None and current_rev == head:
        logger.info("Database already at revision %s, skipping migrations", head)
        return

    logger.info("Upgrading database from %s to %s", current_rev, head)
    try:
        command.upgrade(cfg, "head")
    except Exception:
        logger.exception("Alembic upgrade failed")
        raise
    logger.info("Database migrations applied successfully")


__all__ = ["run_migrations"]
