"""
Database configuration and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from signalboard.core.config import settings

_connect_args = {}
if str(settings.DATABASE_URL).startswith("sqlite"):
    # The API serves requests from a threadpool; SQLite connections must be shareable.
    _connect_args = {"check_same_thread": False}
elif str(settings.DATABASE_URL).startswith(("postgresql://", "postgres://")):
    _connect_args = {"connect_timeout": 5}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args,
    pool_pre_ping=True,  # Verify connections before use
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """Dependency for getting database sessions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
