"""Tests for mutation key derivation"""

import pytest

from commerce.models import (
    CartLineInput,
    CartLineUpdateInput,
    LinesAddRequest,
    LinesUpdateRequest,
    MutationKind,
)
from storefront.cart.keys import (
    UnsupportedMutationError,
    affected_identifiers,
    coerce_payload,
    mutation_key,
)


class TestMutationKey:

    def test_update_key_for_single_line(self):
        assert mutation_key(MutationKind.UPDATE, ["line-1"]) == "update-line-1"

    def test_identifiers_keep_submission_order(self):
        assert mutation_key("remove", ["b", "a"]) == "remove-b-a"
        assert mutation_key("remove", ["b", "a"]) != mutation_key("remove", ["a", "b"])

    def test_same_kind_and_lines_collide(self):
        increment = LinesUpdateRequest(lines=[CartLineUpdateInput(id="line-1", quantity=3)])
        decrement = LinesUpdateRequest(lines=[CartLineUpdateInput(id="line-1", quantity=1)])

        assert mutation_key(
            MutationKind.UPDATE, affected_identifiers(MutationKind.UPDATE, increment)
        ) == mutation_key(
            MutationKind.UPDATE, affected_identifiers(MutationKind.UPDATE, decrement)
        )

    def test_disjoint_lines_do_not_collide(self):
        assert mutation_key("update", ["line-1"]) != mutation_key("update", ["line-2"])

    def test_kind_is_part_of_key(self):
        assert mutation_key("update", ["line-1"]) != mutation_key("remove", ["line-1"])

    def test_code_updates_are_keyed_by_kind_alone(self):
        assert mutation_key("discount-update", []) == "discount-update"
        assert mutation_key("gift-card-update", []) == "gift-card-update"

    def test_add_is_keyed_by_merchandise(self):
        payload = LinesAddRequest(lines=[CartLineInput(merchandise_id="variant-003", quantity=1)])
        identifiers = affected_identifiers(MutationKind.ADD, payload)

        assert mutation_key(MutationKind.ADD, identifiers) == "add-variant-003"

    def test_unknown_kind_fails_fast(self):
        with pytest.raises(UnsupportedMutationError, match="BuyerIdentityUpdate"):
            mutation_key("BuyerIdentityUpdate", ["line-1"])


class TestCoercePayload:

    def test_dict_payload_is_validated(self):
        payload = coerce_payload(
            MutationKind.UPDATE, {"lines": [{"id": "line-1", "quantity": 4}]}
        )

        assert isinstance(payload, LinesUpdateRequest)
        assert payload.lines[0].quantity == 4

    def test_negative_quantity_clamps_at_zero(self):
        payload = coerce_payload(
            MutationKind.UPDATE, {"lines": [{"id": "line-1", "quantity": -3}]}
        )

        assert payload.lines[0].quantity == 0

    def test_negative_quantity_text_clamps_at_zero(self):
        payload = coerce_payload(
            MutationKind.UPDATE, {"lines": [{"id": "line-1", "quantity": "-1"}]}
        )

        assert payload.lines[0].quantity == 0

    def test_quantity_text_is_coerced(self):
        payload = coerce_payload(
            MutationKind.UPDATE, {"lines": [{"id": "line-1", "quantity": " 3 "}]}
        )

        assert payload.lines[0].quantity == 3
