"""Cart storage and pricing for the cart service"""

import os
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from commerce.models import (
    AppliedGiftCard,
    Cart,
    CartCost,
    CartLine,
    CartLineCost,
    CartLineInput,
    CartLineUpdateInput,
    CartResult,
    DiscountCode,
    Merchandise,
    Money,
    UserError,
)

from ..models.product import Product
from .products import ProductDatabase, product_db

CENT = Decimal("0.01")


def _money(amount: Decimal, currency: str = "USD") -> Money:
    return Money(amount=amount.quantize(CENT, rounding=ROUND_HALF_UP), currency_code=currency)


class CartDatabase:
    """In-memory cart storage; the only place prices are computed"""

    TAX_RATE = Decimal("0.0875")  # 8.75% tax

    def __init__(
        self,
        products: ProductDatabase,
        checkout_base_url: Optional[str] = None,
    ):
        self.products = products
        self.checkout_base_url = (
            checkout_base_url
            or os.getenv("CHECKOUT_BASE_URL", "http://localhost:8001")
        ).rstrip("/")
        self.carts: dict[str, Cart] = {}
        # Full gift card codes never leave the service
        self._gift_card_codes: dict[str, list[str]] = {}

    def create_cart(self) -> Cart:
        """Create a new cart"""
        cart_id = uuid.uuid4().hex
        cart = Cart(
            id=cart_id,
            checkout_url=f"{self.checkout_base_url}/checkouts/{cart_id}",
        )
        self.carts[cart_id] = cart
        self._gift_card_codes[cart_id] = []
        self._recalculate_totals(cart)
        return cart

    def get_cart(self, cart_id: str) -> Optional[Cart]:
        """Get a cart by ID"""
        return self.carts.get(cart_id)

    def add_lines(
        self,
        cart_id: str,
        lines: list[CartLineInput],
    ) -> Optional[CartResult]:
        """Add lines, merging into existing lines for the same merchandise"""
        cart = self.get_cart(cart_id)
        if not cart:
            return None

        errors: list[UserError] = []
        requested: dict[str, int] = {}
        for index, line_input in enumerate(lines):
            product = self.products.get_product(line_input.merchandise_id)
            if not product:
                errors.append(UserError(
                    field=["lines", str(index), "merchandise_id"],
                    message=f"Merchandise {line_input.merchandise_id} does not exist",
                    code="INVALID_MERCHANDISE_LINE",
                ))
                continue

            requested[product.id] = requested.get(product.id, 0) + line_input.quantity
            existing = self._find_line_by_merchandise(cart, product.id)
            in_cart = existing.quantity if existing else 0
            if in_cart + requested[product.id] > product.stock_quantity:
                errors.append(self._inventory_error(["lines", str(index), "quantity"], product))

        if errors:
            return CartResult(cart=cart, errors=errors)

        for line_input in lines:
            product = self.products.get_product(line_input.merchandise_id)
            existing = self._find_line_by_merchandise(cart, product.id)
            if existing:
                existing.quantity += line_input.quantity
            else:
                cart.lines.append(CartLine(
                    id=f"line-{uuid.uuid4().hex[:12]}",
                    merchandise=self._merchandise(product),
                    quantity=line_input.quantity,
                ))

        self._recalculate_totals(cart)
        return CartResult(cart=cart)

    def update_lines(
        self,
        cart_id: str,
        lines: list[CartLineUpdateInput],
    ) -> Optional[CartResult]:
        """Set line quantities; a quantity of 0 removes the line"""
        cart = self.get_cart(cart_id)
        if not cart:
            return None

        errors: list[UserError] = []
        for index, line_input in enumerate(lines):
            line = self._find_line(cart, line_input.id)
            if not line:
                errors.append(self._missing_line_error(["lines", str(index), "id"], line_input.id))
                continue

            product = self.products.get_product(line.merchandise.id)
            if product and line_input.quantity > product.stock_quantity:
                errors.append(self._inventory_error(["lines", str(index), "quantity"], product))

        if errors:
            return CartResult(cart=cart, errors=errors)

        quantities = {line_input.id: line_input.quantity for line_input in lines}
        kept = []
        for line in cart.lines:
            if line.id in quantities:
                line.quantity = quantities[line.id]
            if line.quantity > 0:
                kept.append(line)
        cart.lines = kept

        self._recalculate_totals(cart)
        return CartResult(cart=cart)

    def remove_lines(self, cart_id: str, line_ids: list[str]) -> Optional[CartResult]:
        """Remove lines from the cart"""
        cart = self.get_cart(cart_id)
        if not cart:
            return None

        errors = [
            self._missing_line_error(["line_ids", str(index)], line_id)
            for index, line_id in enumerate(line_ids)
            if not self._find_line(cart, line_id)
        ]
        if errors:
            return CartResult(cart=cart, errors=errors)

        cart.lines = [line for line in cart.lines if line.id not in line_ids]
        self._recalculate_totals(cart)
        return CartResult(cart=cart)

    def update_discount_codes(self, cart_id: str, codes: list[str]) -> Optional[CartResult]:
        """
        Replace the cart's discount codes.

        Unknown or ineligible codes are kept on the cart but marked
        inapplicable, so they never affect the total.
        """
        cart = self.get_cart(cart_id)
        if not cart:
            return None

        seen = set()
        discount_codes = []
        for code in codes:
            code = code.strip()
            if not code or code.upper() in seen:
                continue
            seen.add(code.upper())
            discount_codes.append(DiscountCode(code=code, applicable=False))

        cart.discount_codes = discount_codes
        self._recalculate_totals(cart)
        return CartResult(cart=cart)

    def update_gift_card_codes(self, cart_id: str, codes: list[str]) -> Optional[CartResult]:
        """Replace the cart's gift cards; any unknown code rejects the whole update"""
        cart = self.get_cart(cart_id)
        if not cart:
            return None

        normalized = []
        errors: list[UserError] = []
        for index, code in enumerate(codes):
            code = code.strip()
            if not code:
                continue
            if not self.products.get_gift_card(code):
                errors.append(UserError(
                    field=["gift_card_codes", str(index)],
                    message="Gift card code is invalid",
                    code="GIFT_CARD_NOT_FOUND",
                ))
            elif code.upper() not in normalized:
                normalized.append(code.upper())

        if errors:
            return CartResult(cart=cart, errors=errors)

        self._gift_card_codes[cart_id] = normalized
        self._recalculate_totals(cart)
        return CartResult(cart=cart)

    def _find_line(self, cart: Cart, line_id: str) -> Optional[CartLine]:
        return next((line for line in cart.lines if line.id == line_id), None)

    def _find_line_by_merchandise(self, cart: Cart, merchandise_id: str) -> Optional[CartLine]:
        return next(
            (line for line in cart.lines if line.merchandise.id == merchandise_id),
            None,
        )

    def _merchandise(self, product: Product) -> Merchandise:
        return Merchandise(
            id=product.id,
            product_title=product.product_title,
            title=product.title,
            image_url=product.image_url,
        )

    def _inventory_error(self, field: list[str], product: Product) -> UserError:
        return UserError(
            field=field,
            message=(
                f"Only {product.stock_quantity} of {product.product_title} "
                f"are available"
            ),
            code="INSUFFICIENT_INVENTORY",
        )

    def _missing_line_error(self, field: list[str], line_id: str) -> UserError:
        return UserError(
            field=field,
            message=f"Line {line_id} is not in the cart",
            code="INVALID_CART_LINE",
        )

    def _recalculate_totals(self, cart: Cart) -> None:
        """Recalculate line costs, discounts, tax, gift cards and total"""
        subtotal = Decimal("0")
        for line in cart.lines:
            product = self.products.get_product(line.merchandise.id)
            price = product.price
            line_subtotal = price * line.quantity
            line.cost = CartLineCost(
                amount_per_quantity=_money(price),
                compare_at_amount_per_quantity=(
                    _money(product.compare_at_price) if product.compare_at_price else None
                ),
                subtotal_amount=_money(line_subtotal),
                total_amount=_money(line_subtotal),
            )
            subtotal += line_subtotal

        discount_total = Decimal("0")
        for discount_code in cart.discount_codes:
            rule = self.products.get_discount_rule(discount_code.code)
            discount_code.applicable = bool(
                rule and cart.lines and subtotal >= rule.minimum_subtotal
            )
            if discount_code.applicable:
                discount_total += subtotal * rule.percentage / Decimal("100")

        discounted = max(subtotal - discount_total, Decimal("0"))
        tax = (discounted * self.TAX_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
        remaining = discounted + tax

        applied_gift_cards = []
        for code in self._gift_card_codes.get(cart.id, []):
            gift_card = self.products.get_gift_card(code)
            amount_used = min(gift_card.balance, remaining)
            remaining -= amount_used
            applied_gift_cards.append(AppliedGiftCard(
                id=gift_card.id,
                last_characters=gift_card.last_characters,
                amount_used=_money(amount_used),
            ))

        cart.applied_gift_cards = applied_gift_cards
        cart.cost = CartCost(
            subtotal_amount=_money(subtotal),
            total_tax_amount=_money(tax),
            total_amount=_money(remaining),
        )
        cart.total_quantity = sum(line.quantity for line in cart.lines)


# Singleton instance
cart_db = CartDatabase(products=product_db)
