# Cart mutation coalescing

from .coalescer import CartMutationCoalescer, GENERIC_FAILURE
from .controls import (
    ControlDisabledError,
    LineControls,
    LineNotFoundError,
    discount_submission,
    gift_card_submission,
    redact_gift_card,
)
from .keys import UnsupportedMutationError, mutation_key
from .optimistic import project
from .state import CartState, MutationOutcome, OutcomeStatus, PendingMutation
from .view import CartView, build_cart_view

__all__ = [
    "CartMutationCoalescer",
    "GENERIC_FAILURE",
    "ControlDisabledError",
    "LineControls",
    "LineNotFoundError",
    "discount_submission",
    "gift_card_submission",
    "redact_gift_card",
    "UnsupportedMutationError",
    "mutation_key",
    "project",
    "CartState",
    "MutationOutcome",
    "OutcomeStatus",
    "PendingMutation",
    "CartView",
    "build_cart_view",
]
