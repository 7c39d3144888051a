"""
Optimistic cart projection

The displayed cart is the last authoritative snapshot with every pending
mutation replayed over it in submission order. The projection is rebuilt
from scratch on every read and never written back into the snapshot.
Prices are never recomputed here: lines keep the cost last reported by the
cart service and aggregate totals are passed through untouched.
"""

from typing import Iterable

from commerce.models import (
    AppliedGiftCard,
    Cart,
    CartLine,
    DiscountCode,
    Merchandise,
    MutationKind,
)

from .state import PendingMutation

OPTIMISTIC_LINE_PREFIX = "optimistic-"


def project(snapshot: Cart, pending: Iterable[PendingMutation]) -> Cart:
    """Return the cart as it should be displayed while mutations are pending"""
    cart = snapshot.model_copy(deep=True)
    mutations = sorted(pending, key=lambda mutation: mutation.sequence)

    for mutation in mutations:
        _apply(cart, mutation)

    cart.total_quantity = sum(line.quantity for line in cart.lines)
    cart.is_optimistic = bool(mutations)
    return cart


def _apply(cart: Cart, mutation: PendingMutation) -> None:
    payload = mutation.payload

    if mutation.kind is MutationKind.ADD:
        for line_input in payload.lines:
            existing = next(
                (line for line in cart.lines if line.merchandise.id == line_input.merchandise_id),
                None,
            )
            if existing:
                existing.quantity += line_input.quantity
                existing.is_optimistic = True
            else:
                cart.lines.append(CartLine(
                    id=f"{OPTIMISTIC_LINE_PREFIX}{line_input.merchandise_id}",
                    merchandise=Merchandise(
                        id=line_input.merchandise_id,
                        product_title=line_input.merchandise_id,
                    ),
                    quantity=line_input.quantity,
                    is_optimistic=True,
                ))

    elif mutation.kind is MutationKind.UPDATE:
        quantities = {line.id: max(0, line.quantity) for line in payload.lines}
        lines = []
        for line in cart.lines:
            if line.id in quantities:
                line.quantity = quantities[line.id]
                line.is_optimistic = True
            if line.quantity > 0:
                lines.append(line)
        cart.lines = lines

    elif mutation.kind is MutationKind.REMOVE:
        removed = set(payload.line_ids)
        cart.lines = [line for line in cart.lines if line.id not in removed]

    elif mutation.kind is MutationKind.DISCOUNT_UPDATE:
        # Unconfirmed codes never count as applicable
        confirmed = {code.code.upper(): code.applicable for code in cart.discount_codes}
        cart.discount_codes = [
            DiscountCode(code=code.strip(), applicable=confirmed.get(code.strip().upper(), False))
            for code in payload.discount_codes
            if code.strip()
        ]

    elif mutation.kind is MutationKind.GIFT_CARD_UPDATE:
        confirmed = {card.last_characters.upper(): card for card in cart.applied_gift_cards}
        gift_cards = []
        for code in payload.gift_card_codes:
            last_characters = code.strip()[-4:]
            if not last_characters:
                continue
            gift_cards.append(
                confirmed.get(last_characters.upper())
                or AppliedGiftCard(last_characters=last_characters)
            )
        cart.applied_gift_cards = gift_cards
