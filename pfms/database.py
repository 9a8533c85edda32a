"""
Database setup and session management.
Defaults to a SQLite file at ~/PFMS/pfms.db; set PFMS_DATABASE_URL to
point at another database (e.g. Postgres in production).
"""

import os
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

DB_DIR = Path.home() / "PFMS"


def _default_database_url() -> str:
    DB_DIR.mkdir(exist_ok=True)
    return f"sqlite:///{DB_DIR / 'pfms.db'}"


DATABASE_URL = os.environ.get("PFMS_DATABASE_URL") or _default_database_url()


def make_engine(url: str) -> Engine:
    """Create an engine, enabling WAL and foreign keys when the URL is SQLite."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, echo=False)

    new_engine = create_engine(
        url,
        connect_args={"check_same_thread": False},  # Required for SQLite + FastAPI
        echo=False,
    )

    @event.listens_for(new_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return new_engine


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None):
    """Create all tables if they don't exist."""
    from . import models  # noqa: F401 - import to register models
    Base.metadata.create_all(bind=bind or engine)
