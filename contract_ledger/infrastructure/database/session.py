"""Database engine and session management"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session
from contract_ledger.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Create the engine for ``database_url``.

    Server databases get a bounded pool (10 + 10 overflow, connections
    recycled hourly and pinged before use). SQLite files are shared across
    the request threadpool, so same-thread checking is disabled instead.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

# autoflush off: services flush explicitly before aggregate queries
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Request-scoped session; services own commit and rollback"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
