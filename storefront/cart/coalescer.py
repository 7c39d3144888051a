"""
Cart Mutation Coalescer

Turns cart edits into requests against the cart service while keeping an
optimistic view of the cart.

Each submission bumps a generation counter for its mutation key. A response
is applied only while its generation is still the latest for that key, so
for one key the last submitted request wins no matter which response comes
back first. A newer submission also cancels the older in-flight task.

Across keys, a response that arrives after a later request already replaced
the snapshot is not trusted as is; the cart is re-read instead.
"""

import asyncio
import logging
from typing import Any, Union

from pydantic import BaseModel

from commerce.models import Cart, CartResult, MutationKind

from ..services.cart_client import CartClient, CartNotFoundError, CartServiceError
from .controls import ControlDisabledError, LineControls, LineNotFoundError
from .keys import (
    UnsupportedMutationError,
    affected_identifiers,
    coerce_kind,
    coerce_payload,
    mutation_key,
)
from .optimistic import project
from .state import CartState, MutationOutcome, OutcomeStatus, PendingMutation

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "We couldn't update your cart. Please try again."


class CartMutationCoalescer:
    """
    Coalesces cart mutations for one session.

    All mutable state lives in the ``CartState`` handed in, so a coalescer
    can be built per request around the session's state.
    """

    def __init__(self, client: CartClient, state: CartState):
        self.client = client
        self.state = state

    def projected(self) -> Cart:
        """Current optimistic view of the cart"""
        return project(self.state.snapshot, self.state.pending.values())

    async def load(self) -> Cart:
        """Fetch the authoritative cart for this session and return the projection"""
        state = self.state
        if not state.cart_id:
            state.snapshot = Cart()
            state.prune_errors()
            return self.projected()

        try:
            result = await self.client.get_cart(state.cart_id)
        except CartNotFoundError:
            logger.info(f"Cart {state.cart_id} no longer exists, starting over")
            state.forget_cart()
        else:
            state.snapshot = result.cart
        state.prune_errors()
        return self.projected()

    def line_controls(self, line_id: str) -> LineControls:
        """Controls for a line of the projected cart"""
        line = next((line for line in self.projected().lines if line.id == line_id), None)
        if line is None:
            if line_id in self.state.pending_identifiers():
                raise ControlDisabledError(f"Line {line_id} has a pending change")
            raise LineNotFoundError(f"Line {line_id} is not in the cart")
        return LineControls(line)

    async def submit(
        self,
        kind: Union[MutationKind, str],
        payload: Union[BaseModel, dict[str, Any]],
    ) -> MutationOutcome:
        """
        Submit one mutation.

        Raises:
            UnsupportedMutationError: the kind is unknown
            pydantic.ValidationError: the payload does not fit the kind
        """
        kind = coerce_kind(kind)
        payload = coerce_payload(kind, payload)
        identifiers = affected_identifiers(kind, payload)
        key = mutation_key(kind, identifiers)

        state = self.state
        generation = state.next_generation(key)
        state.sequence += 1
        submitted = state.sequence
        state.pending[key] = PendingMutation(
            key=key,
            kind=kind,
            payload=payload,
            identifiers=identifiers,
            generation=generation,
            sequence=submitted,
        )

        prior = state.inflight.get(key)
        if prior is not None and not prior.done():
            logger.debug(f"Cancelling superseded request for {key}")
            prior.cancel()

        task = asyncio.ensure_future(self._send(kind, payload))
        state.inflight[key] = task

        try:
            result = await task
        except asyncio.CancelledError:
            if state.is_latest(key, generation):
                state.settle(key)
                raise
            return MutationOutcome(key=key, kind=kind, status=OutcomeStatus.SUPERSEDED)
        except CartServiceError as e:
            if not state.is_latest(key, generation):
                return MutationOutcome(key=key, kind=kind, status=OutcomeStatus.SUPERSEDED)
            logger.error(f"Cart mutation {key} failed: {e}")
            state.settle(key)
            state.discard_errors(key)
            state.failures[key] = GENERIC_FAILURE
            return MutationOutcome(
                key=key,
                kind=kind,
                status=OutcomeStatus.FAILED,
                failure=GENERIC_FAILURE,
            )

        if not state.is_latest(key, generation):
            logger.debug(f"Discarding stale response for {key} (generation {generation})")
            return MutationOutcome(key=key, kind=kind, status=OutcomeStatus.SUPERSEDED)

        sequence = submitted
        if sequence < state.snapshot_sequence:
            # A later request already answered; this cart may predate it
            result = await self._refresh(result)
            if not state.is_latest(key, generation):
                return MutationOutcome(key=key, kind=kind, status=OutcomeStatus.SUPERSEDED)
            sequence = state.sequence

        line_ids = identifiers if kind in (MutationKind.UPDATE, MutationKind.REMOVE) else []
        return self._apply(key, kind, result, sequence, line_ids)

    def _apply(
        self,
        key: str,
        kind: MutationKind,
        result: CartResult,
        sequence: int,
        line_ids: list[str],
    ) -> MutationOutcome:
        """Replace the snapshot with an authoritative result"""
        state = self.state
        state.snapshot = result.cart
        state.snapshot_sequence = max(state.snapshot_sequence, sequence)
        if result.cart.id:
            state.cart_id = result.cart.id
        state.settle(key)

        if result.errors:
            logger.warning(
                f"Cart mutation {key} returned errors: "
                f"{[error.message for error in result.errors]}"
            )
            state.record_errors(key, result.errors, line_ids)
        else:
            state.discard_errors(key)
            logger.info(f"Applied cart mutation {key}")
        state.failures.clear()
        state.prune_errors()

        return MutationOutcome(
            key=key,
            kind=kind,
            status=OutcomeStatus.APPLIED,
            errors=list(result.errors),
        )

    async def _refresh(self, result: CartResult) -> CartResult:
        """Re-read the cart, keeping the field errors of ``result``"""
        state = self.state
        try:
            fresh = await self.client.get_cart(result.cart.id or state.cart_id)
        except CartServiceError as e:
            logger.warning(f"Could not refresh cart {state.cart_id}: {e}")
            return CartResult(cart=state.snapshot, errors=result.errors)
        return CartResult(cart=fresh.cart, errors=result.errors)

    async def _cart_id(self) -> str:
        """Cart id for this session, creating a cart on first use"""
        state = self.state
        if state.cart_id:
            return state.cart_id

        if state.cart_creation is None:
            state.cart_creation = asyncio.ensure_future(self.client.create_cart())
        creation = state.cart_creation
        try:
            # Shared by every submission racing to create the cart
            result = await asyncio.shield(creation)
        finally:
            if state.cart_creation is creation and creation.done():
                state.cart_creation = None

        if not state.cart_id:
            state.cart_id = result.cart.id
        return state.cart_id

    async def _send(self, kind: MutationKind, payload: BaseModel) -> CartResult:
        cart_id = await self._cart_id()
        try:
            return await self._dispatch(cart_id, kind, payload)
        except CartNotFoundError:
            logger.info(f"Cart {cart_id} no longer exists, retrying on a new cart")
            self.state.forget_cart(cart_id)
            return await self._dispatch(await self._cart_id(), kind, payload)

    async def _dispatch(self, cart_id: str, kind: MutationKind, payload: BaseModel) -> CartResult:
        if kind is MutationKind.ADD:
            return await self.client.add_lines(cart_id, payload.lines)
        elif kind is MutationKind.UPDATE:
            return await self.client.update_lines(cart_id, payload.lines)
        elif kind is MutationKind.REMOVE:
            return await self.client.remove_lines(cart_id, payload.line_ids)
        elif kind is MutationKind.DISCOUNT_UPDATE:
            return await self.client.update_discount_codes(cart_id, payload.discount_codes)
        elif kind is MutationKind.GIFT_CARD_UPDATE:
            return await self.client.update_gift_card_codes(cart_id, payload.gift_card_codes)

        raise UnsupportedMutationError(f"{kind} action is not supported")
