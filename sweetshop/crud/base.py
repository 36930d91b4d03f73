"""
Base CRUD operations with SQLAlchemy 2.x patterns.
Every write commits; on failure the session is rolled back and the error re-raised.
"""
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from sweetshop.database import Base

logger = logging.getLogger(__name__)
ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: int) -> Optional[ModelType]:
        """Get record by ID, bypassing any stale copy held by the session"""
        return db.get(self.model, id, populate_existing=True)

    def get_multi(self, db: Session, *, skip: int = 0, limit: Optional[int] = None) -> List[ModelType]:
        """Get records ordered by ID"""
        stmt = select(self.model).order_by(self.model.id).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(db.execute(stmt).scalars().all())

    def create(self, db: Session, *, obj_in: Dict[str, Any]) -> ModelType:
        """Insert a record and return it refreshed from the database"""
        db_obj = self.model(**obj_in)
        try:
            db.add(db_obj)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Integrity error creating {self.model.__name__}: {e.orig}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise
        db.refresh(db_obj)
        return db_obj

    def update(self, db: Session, *, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        """Apply the given fields to an existing record"""
        if not obj_in:
            return db_obj
        for field, value in obj_in.items():
            setattr(db_obj, field, value)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Integrity error updating {self.model.__name__} {db_obj.id}: {e.orig}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating {self.model.__name__} {db_obj.id}: {e}")
            raise
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, id: int) -> Optional[ModelType]:
        """Delete a record; returns the removed record or None if it did not exist"""
        obj = self.get(db, id)
        if obj is None:
            return None
        try:
            db.delete(obj)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting {self.model.__name__} {id}: {e}")
            raise
        return obj
