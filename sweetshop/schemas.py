from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from sweetshop.models import MAX_QUANTITY

# ------------------------------
# Auth Schemas
# ------------------------------
class UserRegister(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)
    is_admin: bool = Field(False, alias="isAdmin")


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    username: str
    is_admin: bool = Field(..., alias="isAdmin")


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


# ------------------------------
# Sweet Schemas
# ------------------------------
class SweetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    quantity: int = Field(..., ge=0, le=MAX_QUANTITY)


class SweetUpdate(BaseModel):
    """Partial update: only fields present in the payload are applied"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    quantity: Optional[int] = Field(None, ge=0, le=MAX_QUANTITY)


class SweetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    category: str
    price: float
    quantity: int
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class SearchCriteria(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


# ------------------------------
# Stock Schemas
# ------------------------------
class PurchaseRequest(BaseModel):
    # No upper bound: more than can ever be stocked is reported as insufficient stock
    quantity: int = Field(1, gt=0)


class RestockRequest(BaseModel):
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY)


class StockResponse(BaseModel):
    message: str
    sweet: SweetResponse


class MessageResponse(BaseModel):
    message: str
