"""Display model for the cart page and the cart JSON endpoint"""

from typing import Optional

from pydantic import BaseModel

from commerce.models import Cart, DiscountCode, Money, MutationKind, UserError

from .controls import LineControls, redact_gift_card
from .keys import mutation_key
from .state import CartState

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£"}


def format_money(money: Optional[Money]) -> str:
    """Render an amount, or ``-`` when the cart service has not priced it"""
    if money is None:
        return "-"
    symbol = CURRENCY_SYMBOLS.get(money.currency_code)
    if symbol:
        return f"{symbol}{money.amount:.2f}"
    return f"{money.amount:.2f} {money.currency_code}"


class LineView(BaseModel):
    """Displayed cart line with the state of its controls"""
    id: str
    product_title: str
    variant_title: str
    image_url: Optional[str] = None
    quantity: int
    total: str
    compare_at: Optional[str] = None
    is_optimistic: bool
    can_increment: bool
    can_decrement: bool
    can_remove: bool
    errors: list[UserError] = []


class SummaryRow(BaseModel):
    label: str
    amount: str


class CartView(BaseModel):
    """Everything the cart page renders"""
    is_empty: bool
    is_optimistic: bool
    total_quantity: int
    lines: list[LineView] = []
    summary: list[SummaryRow] = []
    subtotal: str = "-"
    tax: str = "-"
    total: str = "-"
    discount_codes: list[DiscountCode] = []
    gift_cards: list[str] = []
    checkout_url: Optional[str] = None
    discount_errors: list[UserError] = []
    gift_card_errors: list[UserError] = []
    errors: dict[str, list[UserError]] = {}
    failure: Optional[str] = None


def build_cart_view(cart: Cart, state: CartState) -> CartView:
    """Build the view of a projected cart"""
    lines = []
    for line in cart.lines:
        controls = LineControls(line)
        line_errors = (
            state.errors.get(mutation_key(MutationKind.UPDATE, [line.id]), [])
            + state.errors.get(mutation_key(MutationKind.REMOVE, [line.id]), [])
        )
        compare_at = None
        if line.cost and line.cost.compare_at_amount_per_quantity:
            compare_at = format_money(line.cost.compare_at_amount_per_quantity)
        lines.append(LineView(
            id=line.id,
            product_title=line.merchandise.product_title,
            variant_title=line.merchandise.title,
            image_url=line.merchandise.image_url,
            quantity=line.quantity,
            total=format_money(line.cost.total_amount if line.cost else None),
            compare_at=compare_at,
            is_optimistic=line.is_optimistic,
            can_increment=controls.can_increment,
            can_decrement=controls.can_decrement,
            can_remove=controls.can_remove,
            errors=line_errors,
        ))

    summary = [
        SummaryRow(
            label=f"{line.product_title} × {line.quantity}",
            amount=line.total,
        )
        for line in lines
    ]

    failure = next(iter(state.failures.values()), None)

    return CartView(
        is_empty=cart.total_quantity == 0,
        is_optimistic=cart.is_optimistic,
        total_quantity=cart.total_quantity,
        lines=lines,
        summary=summary,
        subtotal=format_money(cart.cost.subtotal_amount),
        tax=format_money(cart.cost.total_tax_amount),
        total=format_money(cart.cost.total_amount),
        discount_codes=cart.discount_codes,
        gift_cards=[redact_gift_card(card.last_characters) for card in cart.applied_gift_cards],
        checkout_url=cart.checkout_url,
        discount_errors=state.errors.get(MutationKind.DISCOUNT_UPDATE.value, []),
        gift_card_errors=state.errors.get(MutationKind.GIFT_CARD_UPDATE.value, []),
        errors=dict(state.errors),
        failure=failure,
    )
