# Cart Service Models

from .product import Product, DiscountRule, GiftCard

__all__ = [
    "Product",
    "DiscountRule",
    "GiftCard",
]
