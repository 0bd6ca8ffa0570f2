"""Database helpers: engines, session factories and DB initialization.

Provides read/write session factories and an `init_db` helper that creates
the tables used by the scoring service.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from core.config import WRITE_DATABASE_URL, READ_DATABASE_URL
from .models import Base


def _connect_args(url: str) -> dict:
    # SQLite objects are shared with the dashboard's worker threads.
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


# Read/Write partitioning pattern
# In production, point WRITE_DATABASE_URL and READ_DATABASE_URL at the primary
# and a replica. For SQLite/demo both default to the same file.
write_engine = create_engine(WRITE_DATABASE_URL, connect_args=_connect_args(WRITE_DATABASE_URL))
read_engine = create_engine(READ_DATABASE_URL, connect_args=_connect_args(READ_DATABASE_URL))

WriteSessionLocal = sessionmaker(bind=write_engine)
ReadSessionLocal = sessionmaker(bind=read_engine)


def init_db(engine=None):
    """Create all tables on the given engine (the write engine by default)."""
    Base.metadata.create_all(bind=engine or write_engine)


def get_write_session():
    """Yield a write-enabled SQLAlchemy session for the request scope.

    Use this generator as a FastAPI dependency to ensure the session is
    properly closed after the request completes.
    """
    db = WriteSessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_read_session():
    """Yield a read-only SQLAlchemy session for the request scope."""
    db = ReadSessionLocal()
    try:
        yield db
    finally:
        db.close()
