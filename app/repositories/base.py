"""
Base repository for the Match Record Store and future stores.

Keeps session handling (staging, commit, rollback) out of the sync loop,
so the updater and discovery only speak in terms of records.
"""
from abc import ABC
from typing import TypeVar, Generic, Type, Optional
from sqlalchemy.orm import Query, Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Session-bound data access for one model.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session, owned by the caller
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    def query(self) -> Query:
        """Start a query over this repository's model."""
        return self.db.query(self.model_type)

    def where_first(self, *criterion) -> Optional[T]:
        return self.query().filter(*criterion).first()

    def exists_where(self, *criterion) -> bool:
        return self.db.query(self.query().filter(*criterion).exists()).scalar()

    def add(self, instance: T) -> T:
        """Stage a new record. Nothing is written until save()."""
        self.db.add(instance)
        return instance

    def save(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
