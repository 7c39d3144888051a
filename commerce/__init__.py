# Cart wire models

from .models import (
    AppliedGiftCard,
    Cart,
    CartCost,
    CartLine,
    CartLineCost,
    CartLineInput,
    CartLineUpdateInput,
    CartResult,
    DiscountCode,
    DiscountCodesUpdateRequest,
    GiftCardCodesUpdateRequest,
    LinesAddRequest,
    LinesRemoveRequest,
    LinesUpdateRequest,
    Merchandise,
    Money,
    MutationKind,
    UserError,
)

__all__ = [
    "AppliedGiftCard",
    "Cart",
    "CartCost",
    "CartLine",
    "CartLineCost",
    "CartLineInput",
    "CartLineUpdateInput",
    "CartResult",
    "DiscountCode",
    "DiscountCodesUpdateRequest",
    "GiftCardCodesUpdateRequest",
    "LinesAddRequest",
    "LinesRemoveRequest",
    "LinesUpdateRequest",
    "Merchandise",
    "Money",
    "MutationKind",
    "UserError",
]
