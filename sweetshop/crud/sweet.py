"""
Sweet CRUD operations:
- Case-insensitive search
- Stock changes as single conditional UPDATE statements
"""
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sweetshop.crud.base import CRUDBase
from sweetshop.models import MAX_QUANTITY, Sweet

logger = logging.getLogger(__name__)


class CRUDSweet(CRUDBase[Sweet]):
    def __init__(self):
        super().__init__(Sweet)

    def search(
        self,
        db: Session,
        *,
        name: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> List[Sweet]:
        """Filter sweets; every criterion given is ANDed, None means unconstrained"""
        stmt = select(Sweet)
        if name:
            stmt = stmt.where(Sweet.name.icontains(name, autoescape=True))
        if category:
            stmt = stmt.where(Sweet.category.icontains(category, autoescape=True))
        if min_price is not None:
            stmt = stmt.where(Sweet.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Sweet.price <= max_price)
        stmt = stmt.order_by(Sweet.id)
        return list(db.execute(stmt).scalars().all())

    def adjust_quantity(self, db: Session, *, id: int, delta: int) -> bool:
        """
        Add delta to a sweet's quantity in one statement.

        A negative delta only applies while the stored quantity covers it, so the
        sufficiency check and the write cannot be separated by another request.
        A positive delta only applies while the result stays within MAX_QUANTITY.
        Returns False (after rolling back) when no row was changed.
        """
        stmt = (
            update(Sweet)
            .where(Sweet.id == id)
            .values(quantity=Sweet.quantity + delta)
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            stmt = stmt.where(Sweet.quantity >= -delta)
        else:
            stmt = stmt.where(Sweet.quantity <= MAX_QUANTITY - delta)

        try:
            result = db.execute(stmt)
            if result.rowcount != 1:
                db.rollback()
                return False
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error adjusting quantity of sweet {id} by {delta}: {e}")
            raise
        return True


crud_sweet = CRUDSweet()
