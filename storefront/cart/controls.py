"""Interactive cart controls; each activation yields exactly one submission"""

from typing import Optional

from commerce.models import (
    CartLine,
    CartLineUpdateInput,
    DiscountCodesUpdateRequest,
    GiftCardCodesUpdateRequest,
    LinesRemoveRequest,
    LinesUpdateRequest,
    MutationKind,
)

# (kind, payload) pair ready for CartMutationCoalescer.submit
Submission = tuple[MutationKind, object]

GIFT_CARD_MASK = "***"


class ControlDisabledError(Exception):
    """A control was activated while disabled"""
    pass


class LineNotFoundError(LookupError):
    """No line with that id in the displayed cart"""
    pass


class LineControls:
    """Increment, decrement and remove controls for one displayed line"""

    def __init__(self, line: CartLine):
        self.line = line

    @property
    def next_quantity(self) -> int:
        return self.line.quantity + 1

    @property
    def previous_quantity(self) -> int:
        return max(0, self.line.quantity - 1)

    @property
    def can_increment(self) -> bool:
        return not self.line.is_optimistic

    @property
    def can_decrement(self) -> bool:
        return self.line.quantity > 1 and not self.line.is_optimistic

    @property
    def can_remove(self) -> bool:
        return not self.line.is_optimistic

    def increment(self) -> Submission:
        if not self.can_increment:
            raise ControlDisabledError(f"Line {self.line.id} has a pending change")
        return self._update(self.next_quantity)

    def decrement(self) -> Submission:
        if not self.can_decrement:
            raise ControlDisabledError(f"Line {self.line.id} cannot be decreased")
        return self._update(self.previous_quantity)

    def remove(self) -> Submission:
        if not self.can_remove:
            raise ControlDisabledError(f"Line {self.line.id} has a pending change")
        return MutationKind.REMOVE, LinesRemoveRequest(line_ids=[self.line.id])

    def _update(self, quantity: int) -> Submission:
        return MutationKind.UPDATE, LinesUpdateRequest(
            lines=[CartLineUpdateInput(id=self.line.id, quantity=quantity)]
        )


def discount_submission(code: Optional[str]) -> Submission:
    """Apply a single discount code; a blank code clears them"""
    code = (code or "").strip()
    codes = [code] if code else []
    return MutationKind.DISCOUNT_UPDATE, DiscountCodesUpdateRequest(discount_codes=codes)


def gift_card_submission(codes: list[str]) -> Submission:
    codes = [code.strip() for code in codes if code and code.strip()]
    return MutationKind.GIFT_CARD_UPDATE, GiftCardCodesUpdateRequest(gift_card_codes=codes)


def redact_gift_card(last_characters: str) -> str:
    """Display form of a gift card, e.g. ``***1234``"""
    return f"{GIFT_CARD_MASK}{last_characters[-4:]}"
