"""Engine and session factory for the store.

PostgreSQL in production, SQLite in tests and local runs. Every store
statement is synchronous, so there is no async engine.

    with get_sync_session() as db:
        courses = Store(db).select(Course)
"""

import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


def _get_database_url() -> str:
    """DATABASE_URL from the environment, falling back to backend/.env.

    Raises:
        RuntimeError: no URL configured.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        from trading_academy.utils.env import load_env_file
        load_env_file()
        database_url = os.getenv("DATABASE_URL")

    if not database_url:
        raise RuntimeError("DATABASE_URL is not set (export it or add it to backend/.env)")

    # SQLAlchemy only accepts the postgresql:// scheme
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    return database_url


DATABASE_URL = _get_database_url()

if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(DATABASE_URL, pool_size=5, max_overflow=10, pool_recycle=1800, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

# Registers the models on Base before anything reflects over the metadata
from .models import Base  # noqa: E402,F401


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session for FastAPI dependencies."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_sync_session() -> Generator[Session, None, None]:
    """Session for code outside a request (seeding, scripts)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
