"""Database connection and session management.

This module handles the database connection using SQLAlchemy. PostgreSQL is
used when a connection string is configured, otherwise a local SQLite file.
"""

import logging
from typing import Any, Dict

from sqlalchemy import create_engine, event, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from aiquiz.config import (
    DATA_DIR,
    DEFAULT_ADMIN_AI_LIMIT,
    DEFAULT_ADMIN_PIN,
    DEFAULT_ADMIN_USERNAME,
    get_database_url,
)
from aiquiz.models.base import Base
# Import models to ensure they are registered with Base.metadata
from aiquiz.models import AdminUserModel

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = get_database_url()


def _engine_kwargs(url: str) -> Dict[str, Any]:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection so every session sees the same in-memory DB
        kwargs["poolclass"] = StaticPool
    else:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
    return kwargs


engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_kwargs(SQLALCHEMY_DATABASE_URL))


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def bootstrap_database(db: Session) -> bool:
    """Create tables and indexes if missing and seed the default admin.

    Safe to run any number of times.

    Args:
        db: SQLAlchemy Session.

    Returns:
        True if the default admin was created by this call.
    """
    Base.metadata.create_all(bind=db.get_bind())

    admin_count = db.query(func.count(AdminUserModel.id)).scalar()
    if admin_count:
        logger.info("Database initialized (%d admin users present)", admin_count)
        return False

    db.add(
        AdminUserModel(
            username=DEFAULT_ADMIN_USERNAME,
            pin=DEFAULT_ADMIN_PIN,
            ai_limit=DEFAULT_ADMIN_AI_LIMIT,
        )
    )
    db.commit()
    logger.info("Default admin created (username: %s)", DEFAULT_ADMIN_USERNAME)
    return True


def init_db() -> bool:
    """Bootstrap the configured database."""
    with SessionLocal() as db:
        return bootstrap_database(db)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
