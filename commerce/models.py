"""Cart wire models shared by the storefront and the cart service"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class MutationKind(str, Enum):
    """Kinds of cart mutation a storefront may submit"""
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
    DISCOUNT_UPDATE = "discount-update"
    GIFT_CARD_UPDATE = "gift-card-update"


class Money(BaseModel):
    """Amount in a currency"""
    amount: Decimal
    currency_code: str = "USD"


class Merchandise(BaseModel):
    """Purchasable variant referenced by a cart line"""
    id: str
    product_title: str
    title: str = "Default Title"
    image_url: Optional[str] = None


class CartLineCost(BaseModel):
    """Per-line cost breakdown as reported by the cart service"""
    amount_per_quantity: Money
    compare_at_amount_per_quantity: Optional[Money] = None
    subtotal_amount: Money
    total_amount: Money


class CartLine(BaseModel):
    """Line in a cart"""
    id: str
    merchandise: Merchandise
    quantity: int = Field(ge=0)
    cost: Optional[CartLineCost] = None
    is_optimistic: bool = False


class CartCost(BaseModel):
    """Aggregate cart cost"""
    subtotal_amount: Optional[Money] = None
    total_tax_amount: Optional[Money] = None
    total_amount: Optional[Money] = None


class DiscountCode(BaseModel):
    """Discount code applied to a cart"""
    code: str
    applicable: bool


class AppliedGiftCard(BaseModel):
    """Gift card applied to a cart, only ever identified by its last characters"""
    id: Optional[str] = None
    last_characters: str
    amount_used: Optional[Money] = None


class Cart(BaseModel):
    """Shopping cart"""
    id: Optional[str] = None
    lines: list[CartLine] = []
    cost: CartCost = Field(default_factory=CartCost)
    discount_codes: list[DiscountCode] = []
    applied_gift_cards: list[AppliedGiftCard] = []
    checkout_url: Optional[str] = None
    total_quantity: int = 0
    is_optimistic: bool = False


class UserError(BaseModel):
    """Field-level error returned alongside a cart"""
    field: list[str] = []
    message: str
    code: Optional[str] = None


class CartResult(BaseModel):
    """Authoritative cart plus any field-level errors"""
    cart: Cart
    errors: list[UserError] = []


# ==================== Request bodies ====================

class CartLineInput(BaseModel):
    """Line to add to a cart"""
    merchandise_id: str
    quantity: int = Field(default=1, gt=0)


class CartLineUpdateInput(BaseModel):
    """New quantity for an existing line; 0 removes the line"""
    id: str
    quantity: int = Field(ge=0)

    @field_validator("quantity", mode="before")
    @classmethod
    def clamp_quantity(cls, value):
        # Quantities never go below zero
        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                return value
        if isinstance(value, int) and value < 0:
            return 0
        return value


class LinesAddRequest(BaseModel):
    lines: list[CartLineInput]


class LinesUpdateRequest(BaseModel):
    lines: list[CartLineUpdateInput]


class LinesRemoveRequest(BaseModel):
    line_ids: list[str]


class DiscountCodesUpdateRequest(BaseModel):
    discount_codes: list[str] = []


class GiftCardCodesUpdateRequest(BaseModel):
    gift_card_codes: list[str] = []
