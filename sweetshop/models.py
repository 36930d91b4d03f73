"""
SQLAlchemy 2.x models.
Uniqueness and non-negative stock/price are enforced by the database itself.
"""
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from sweetshop.database import Base

# Largest value a 64-bit INTEGER column can hold
MAX_QUANTITY = 2**63 - 1


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User id={self.id} username={self.username!r} admin={self.is_admin}>"


class Sweet(Base):
    __tablename__ = "sweets"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_sweets_price_non_negative"),
        CheckConstraint("quantity >= 0", name="ck_sweets_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Sweet id={self.id} name={self.name!r} quantity={self.quantity}>"
