"""FastAPI dependencies exposing DB sessions and app-scoped services.

`get_db_write` is used by endpoints that persist (score computation always
upserts), `get_db_read` by pure read endpoints such as weekly aggregation.
"""

from fastapi import Request

from .database import get_read_session, get_write_session, ReadSessionLocal, WriteSessionLocal


def get_db_write():
    """Yield a write-capable DB session for FastAPI dependency injection."""
    yield from get_write_session()


def get_db_read():
    """Yield a read-only DB session for FastAPI dependency injection."""
    yield from get_read_session()


def get_session_factories():
    """``(write, read)`` session factories for work that opens its own sessions off the request thread."""
    return WriteSessionLocal, ReadSessionLocal


def get_widget_cache(request: Request):
    """The process-wide widget cache created in the application lifespan."""
    return request.app.state.widget_cache


def get_persist_listeners(request: Request):
    """Failure listeners for best-effort score writes."""
    return [request.app.state.persist_monitor]
