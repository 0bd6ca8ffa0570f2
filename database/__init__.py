"""Database package: ORM models, engines and request-scoped sessions.

Import `models` for table classes and `init_db` to create the schema; the
FastAPI dependencies live in `database.deps`.
"""

from .database import (
    write_engine,
    read_engine,
    WriteSessionLocal,
    ReadSessionLocal,
    init_db,
)
from .models import Base
from . import models

__all__ = [
    "Base",
    "write_engine",
    "read_engine",
    "WriteSessionLocal",
    "ReadSessionLocal",
    "init_db",
    "models",
]
