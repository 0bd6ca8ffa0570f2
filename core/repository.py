"""Repository base class for database operations.

Wraps the session patterns the services share: add-and-commit and an
idempotent upsert on a composite unique key.
"""

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from typing import TypeVar, Generic, Type, Any, Dict, Sequence
from database.models import Base

T = TypeVar('T', bound=Base)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class BaseRepository(Generic[T]):
    """Generic repository for common database operations.

    Attributes:
        model: SQLAlchemy model class to operate on.
        session: Database session for executing queries.
    """

    def __init__(self, model: Type[T], session: Session):
        self.model = model
        self.session = session

    def upsert(self, values: Dict[str, Any], conflict_columns: Sequence[str]) -> None:
        """Insert ``values`` or overwrite the row that matches ``conflict_columns``.

        Uses ``INSERT ... ON CONFLICT DO UPDATE`` where the dialect supports
        it so concurrent writers cannot produce duplicates; other dialects
        fall back to select-then-update inside the same transaction. Last
        write wins and every non-key column is replaced.

        Args:
            values: Column values for the full row.
            conflict_columns: Columns of the unique constraint.
        """
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        update_cols = {k: v for k, v in values.items() if k not in conflict_columns}

        if insert is not None:
            stmt = insert(self.model).values(**values)
            stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=update_cols)
            self.session.execute(stmt)
        else:
            filters = [getattr(self.model, c) == values[c] for c in conflict_columns]
            existing = self.session.query(self.model).filter(*filters).one_or_none()
            if existing is None:
                self.session.add(self.model(**values))
            else:
                for key, value in update_cols.items():
                    setattr(existing, key, value)
        self.session.commit()


def save(session: Session, obj: Base) -> Base:
    """Convenience function to add, commit and refresh an object."""
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj

