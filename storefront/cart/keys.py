"""
Mutation keys

Every cart mutation is grouped under a key built from its kind and the
identifiers it touches. Submissions sharing a key coalesce: only the most
recently submitted one may change the cart.
"""

from typing import Any, Union

from pydantic import BaseModel

from commerce.models import (
    DiscountCodesUpdateRequest,
    GiftCardCodesUpdateRequest,
    LinesAddRequest,
    LinesRemoveRequest,
    LinesUpdateRequest,
    MutationKind,
)

SEPARATOR = "-"

PAYLOAD_TYPES: dict[MutationKind, type[BaseModel]] = {
    MutationKind.ADD: LinesAddRequest,
    MutationKind.UPDATE: LinesUpdateRequest,
    MutationKind.REMOVE: LinesRemoveRequest,
    MutationKind.DISCOUNT_UPDATE: DiscountCodesUpdateRequest,
    MutationKind.GIFT_CARD_UPDATE: GiftCardCodesUpdateRequest,
}


class UnsupportedMutationError(ValueError):
    """A mutation kind the storefront does not know how to submit"""
    pass


def coerce_kind(kind: Union[MutationKind, str]) -> MutationKind:
    """Resolve a kind name, failing fast on anything unknown"""
    try:
        return MutationKind(kind)
    except ValueError:
        raise UnsupportedMutationError(f"{kind} action is not supported") from None


def coerce_payload(kind: MutationKind, payload: Union[BaseModel, dict[str, Any]]) -> BaseModel:
    """Validate a payload against the request body for its kind"""
    payload_type = PAYLOAD_TYPES.get(kind)
    if payload_type is None:
        raise UnsupportedMutationError(f"{kind} action is not supported")
    if isinstance(payload, payload_type):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump()
    return payload_type.model_validate(payload)


def affected_identifiers(kind: MutationKind, payload: BaseModel) -> list[str]:
    """Identifiers a mutation touches, in the order they were submitted"""
    if kind is MutationKind.ADD:
        return [line.merchandise_id for line in payload.lines]
    if kind is MutationKind.UPDATE:
        return [line.id for line in payload.lines]
    if kind is MutationKind.REMOVE:
        return list(payload.line_ids)
    if kind in (MutationKind.DISCOUNT_UPDATE, MutationKind.GIFT_CARD_UPDATE):
        return []
    raise UnsupportedMutationError(f"{kind} action is not supported")


def mutation_key(kind: Union[MutationKind, str], identifiers: list[str]) -> str:
    """
    Build the coalescing key for a mutation.

    The identifiers keep their submission order. Increments and decrements
    of one line both produce ``update-<lineId>`` and therefore coalesce.
    """
    kind = coerce_kind(kind)
    return SEPARATOR.join([kind.value, *identifiers])
