"""
Sweets router.
Any authenticated user can browse and purchase; creating, editing, deleting
and restocking require an admin.
"""
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from sweetshop import models
from sweetshop.database import get_db
from sweetshop.dependencies import get_current_user, require_admin
from sweetshop.exceptions import ValidationError
from sweetshop.schemas import (
    MessageResponse,
    PurchaseRequest,
    RestockRequest,
    SearchCriteria,
    StockResponse,
    SweetCreate,
    SweetResponse,
    SweetUpdate,
)
from sweetshop.services import inventory_service

router = APIRouter(prefix="/sweets", tags=["sweets"])


def _stock_response(result: inventory_service.StockResult) -> StockResponse:
    return StockResponse(message=result.message, sweet=SweetResponse.model_validate(result.sweet))


def _price_param(value: Optional[str], param: str) -> Optional[float]:
    """Blank query values (`?minPrice=`) mean no bound"""
    if value is None or not value.strip():
        return None
    try:
        price = float(value)
    except ValueError:
        raise ValidationError(f"{param} must be a number") from None
    if not math.isfinite(price):
        raise ValidationError(f"{param} must be a number")
    return price


# ====================
# BROWSING (authenticated)
# ====================

@router.get("", response_model=List[SweetResponse])
def list_sweets(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return inventory_service.list_sweets(db)


@router.get("/search", response_model=List[SweetResponse])
def search_sweets(
    name: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Case-insensitive name/category match and an inclusive price range"""
    criteria = SearchCriteria(
        name=name,
        category=category,
        min_price=_price_param(min_price, "minPrice"),
        max_price=_price_param(max_price, "maxPrice"),
    )
    return inventory_service.search_sweets(db, criteria)


@router.get("/{sweet_id}", response_model=SweetResponse)
def get_sweet(
    sweet_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return inventory_service.get_sweet(db, sweet_id)


# ====================
# CATALOGUE (admin only)
# ====================

@router.post("", response_model=SweetResponse, status_code=status.HTTP_201_CREATED)
def create_sweet(
    sweet: SweetCreate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return inventory_service.create_sweet(
        db, sweet.name, sweet.category, sweet.price, sweet.quantity
    )


@router.put("/{sweet_id}", response_model=SweetResponse)
def update_sweet(
    sweet_id: int,
    changes: SweetUpdate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return inventory_service.update_sweet(db, sweet_id, changes)


@router.delete("/{sweet_id}", response_model=MessageResponse)
def delete_sweet(
    sweet_id: int,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return inventory_service.delete_sweet(db, sweet_id)


# ====================
# STOCK OPERATIONS
# ====================

@router.post("/{sweet_id}/purchase", response_model=StockResponse)
def purchase_sweet(
    sweet_id: int,
    purchase: Optional[PurchaseRequest] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Buy `quantity` units (default 1); 400 when stock does not cover it"""
    quantity = purchase.quantity if purchase is not None else 1
    return _stock_response(inventory_service.purchase_sweet(db, sweet_id, quantity))


@router.post("/{sweet_id}/restock", response_model=StockResponse)
def restock_sweet(
    sweet_id: int,
    restock: RestockRequest,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _stock_response(inventory_service.restock_sweet(db, sweet_id, restock.quantity))
