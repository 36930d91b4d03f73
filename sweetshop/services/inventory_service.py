"""
Inventory service: CRUD and search over sweets plus purchase/restock.

Invariants kept here and backed by database constraints:
- price >= 0 and quantity >= 0 after every mutation
- sweet names are unique
Purchase and restock never read-then-write; see CRUDSweet.adjust_quantity.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sweetshop.crud import crud_sweet
from sweetshop.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from sweetshop.models import MAX_QUANTITY, Sweet
from sweetshop.schemas import SearchCriteria, SweetUpdate

logger = logging.getLogger(__name__)

DUPLICATE_NAME = "Sweet with this name already exists"


@dataclass
class StockResult:
    message: str
    sweet: Sweet


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_whole(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_fields(fields: Dict[str, Any]) -> None:
    for field in ("name", "category"):
        if field in fields and (fields[field] is None or not str(fields[field]).strip()):
            raise ValidationError(f"{field.capitalize()} must not be empty")
    if "price" in fields:
        if not _is_number(fields["price"]) or not math.isfinite(fields["price"]):
            raise ValidationError("Price must be a number")
        if fields["price"] < 0:
            raise ValidationError("Price must be non-negative")
    if "quantity" in fields:
        if not _is_whole(fields["quantity"]):
            raise ValidationError("Quantity must be a whole number")
        if fields["quantity"] < 0:
            raise ValidationError("Quantity must be non-negative")
        if fields["quantity"] > MAX_QUANTITY:
            raise ValidationError("Quantity is too large")


def _validate_amount(quantity: Any) -> None:
    if not _is_whole(quantity) or quantity <= 0:
        raise ValidationError("Quantity must be a positive whole number")


def list_sweets(db: Session) -> List[Sweet]:
    return crud_sweet.get_multi(db)


def get_sweet(db: Session, sweet_id: int) -> Sweet:
    sweet = crud_sweet.get(db, sweet_id)
    if sweet is None:
        raise NotFoundError("Sweet not found")
    return sweet


def search_sweets(db: Session, criteria: Optional[SearchCriteria] = None) -> List[Sweet]:
    """Blank strings and None impose no constraint; an empty result is not an error"""
    criteria = criteria or SearchCriteria()
    return crud_sweet.search(
        db,
        name=(criteria.name or "").strip() or None,
        category=(criteria.category or "").strip() or None,
        min_price=criteria.min_price,
        max_price=criteria.max_price,
    )


def create_sweet(db: Session, name: str, category: str, price: float, quantity: int) -> Sweet:
    if not name or not category or price is None or quantity is None:
        raise ValidationError("Name, category, price, and quantity are required")
    fields = {"name": name, "category": category, "price": price, "quantity": quantity}
    _validate_fields(fields)

    try:
        sweet = crud_sweet.create(db, obj_in=fields)
    except IntegrityError as e:
        raise ConflictError(DUPLICATE_NAME) from e

    logger.info(f"Created sweet {sweet.name} (id={sweet.id}, quantity={sweet.quantity})")
    return sweet


def update_sweet(db: Session, sweet_id: int, changes: SweetUpdate) -> Sweet:
    """Apply only the fields present in `changes`; no fields means no change"""
    sweet = get_sweet(db, sweet_id)
    fields = changes.model_dump(exclude_unset=True)
    if not fields:
        return sweet
    _validate_fields(fields)

    try:
        sweet = crud_sweet.update(db, db_obj=sweet, obj_in=fields)
    except IntegrityError as e:
        raise ConflictError(DUPLICATE_NAME) from e

    logger.info(f"Updated sweet {sweet.id}: {sorted(fields)}")
    return sweet


def delete_sweet(db: Session, sweet_id: int) -> Dict[str, str]:
    removed = crud_sweet.remove(db, id=sweet_id)
    if removed is None:
        raise NotFoundError("Sweet not found")
    logger.info(f"Deleted sweet {removed.name} (id={sweet_id})")
    return {"message": "Sweet deleted successfully"}


def purchase_sweet(db: Session, sweet_id: int, quantity: int = 1) -> StockResult:
    _validate_amount(quantity)

    if quantity > MAX_QUANTITY:
        # No row can hold that much stock, and the amount cannot be bound as a parameter
        sweet = get_sweet(db, sweet_id)
        logger.info(f"Purchase of {quantity} x {sweet.name} rejected, {sweet.quantity} in stock")
        raise InsufficientStockError()

    if not crud_sweet.adjust_quantity(db, id=sweet_id, delta=-quantity):
        sweet = get_sweet(db, sweet_id)
        logger.info(
            f"Purchase of {quantity} x {sweet.name} rejected, {sweet.quantity} in stock"
        )
        raise InsufficientStockError()

    sweet = get_sweet(db, sweet_id)
    logger.info(f"Purchased {quantity} x {sweet.name}, {sweet.quantity} left")
    return StockResult(
        message=f"Successfully purchased {quantity} {sweet.name}(s)",
        sweet=sweet,
    )


def restock_sweet(db: Session, sweet_id: int, quantity: int) -> StockResult:
    if quantity is None:
        raise ValidationError("Positive quantity is required")
    _validate_amount(quantity)
    if quantity > MAX_QUANTITY:
        raise ValidationError("Quantity is too large")

    if not crud_sweet.adjust_quantity(db, id=sweet_id, delta=quantity):
        sweet = get_sweet(db, sweet_id)
        logger.info(f"Restock of {quantity} x {sweet.name} rejected, {sweet.quantity} in stock")
        raise ValidationError("Restock would exceed the maximum stock level")

    sweet = get_sweet(db, sweet_id)
    logger.info(f"Restocked {quantity} x {sweet.name}, {sweet.quantity} in stock")
    return StockResult(
        message=f"Successfully restocked {quantity} {sweet.name}(s)",
        sweet=sweet,
    )
