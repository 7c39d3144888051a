"""Mock merchandise catalog, discount rules and gift cards"""

from decimal import Decimal
from typing import Optional

from ..models.product import DiscountRule, GiftCard, Product

# Mock merchandise catalog, keyed by variant id
PRODUCTS: dict[str, Product] = {
    "variant-001": Product(
        id="variant-001",
        product_title="Sony WH-1000XM5 Wireless Headphones",
        title="Black",
        price=Decimal("349.99"),
        compare_at_price=Decimal("399.99"),
        sku="SONY-WH1000XM5-BLK",
        image_url="/static/images/sony-headphones.jpg",
        stock_quantity=50,
    ),
    "variant-002": Product(
        id="variant-002",
        product_title="Patagonia Better Sweater Jacket",
        title="Navy / M",
        price=Decimal("139.00"),
        sku="PATA-BSJKT-NVY-M",
        image_url="/static/images/patagonia-sweater.jpg",
        stock_quantity=75,
    ),
    "variant-003": Product(
        id="variant-003",
        product_title="Yeti Rambler Tumbler",
        title="20 oz",
        price=Decimal("10.00"),
        sku="YETI-RAMB-20",
        image_url="/static/images/yeti-tumbler.jpg",
        stock_quantity=200,
    ),
    "variant-004": Product(
        id="variant-004",
        product_title="Atomic Habits by James Clear",
        title="Hardcover",
        price=Decimal("24.99"),
        sku="BOOK-ATOMIC-HC",
        image_url="/static/images/atomic-habits.jpg",
        stock_quantity=5,
    ),
}

DISCOUNT_RULES: dict[str, DiscountRule] = {
    "SAVE10": DiscountRule(
        code="SAVE10",
        percentage=Decimal("10"),
        minimum_subtotal=Decimal("50.00"),
    ),
    "WELCOME5": DiscountRule(code="WELCOME5", percentage=Decimal("5")),
}

GIFT_CARDS: dict[str, GiftCard] = {
    "ABCD1234": GiftCard(id="gift-card-001", code="ABCD1234", balance=Decimal("25.00")),
    "GIFT5000": GiftCard(id="gift-card-002", code="GIFT5000", balance=Decimal("50.00")),
}


class ProductDatabase:
    """In-memory catalog for the cart service"""

    def __init__(self):
        self.products = {pid: p.model_copy() for pid, p in PRODUCTS.items()}
        self.discount_rules = DISCOUNT_RULES.copy()
        self.gift_cards = {code: g.model_copy() for code, g in GIFT_CARDS.items()}

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product variant by ID"""
        return self.products.get(product_id)

    def get_all_products(self) -> list[Product]:
        """Get all product variants"""
        return list(self.products.values())

    def get_discount_rule(self, code: str) -> Optional[DiscountRule]:
        """Look up a discount rule; codes are case-insensitive"""
        return self.discount_rules.get(code.strip().upper())

    def get_gift_card(self, code: str) -> Optional[GiftCard]:
        """Look up a gift card; codes are case-insensitive"""
        return self.gift_cards.get(code.strip().upper())


# Singleton instance
product_db = ProductDatabase()
