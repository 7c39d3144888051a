"""Merchandise catalog models for the cart service"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class Product(BaseModel):
    """Purchasable variant in the catalog"""
    id: str
    product_title: str
    title: str = "Default Title"
    price: Decimal = Field(gt=0)
    compare_at_price: Optional[Decimal] = None
    currency: str = "USD"
    sku: str
    image_url: Optional[str] = None
    stock_quantity: int = Field(ge=0, default=100)

    class Config:
        from_attributes = True


class DiscountRule(BaseModel):
    """Percentage discount applicable above a minimum subtotal"""
    code: str
    percentage: Decimal = Field(gt=0, le=100)
    minimum_subtotal: Decimal = Decimal("0")


class GiftCard(BaseModel):
    """Gift card with a remaining balance"""
    id: str
    code: str
    balance: Decimal = Field(ge=0)

    @property
    def last_characters(self) -> str:
        return self.code[-4:]
