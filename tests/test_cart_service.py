"""
Component tests for the cart service

The service is exercised through its HTTP API with real storage and
catalog instances, checking that pricing is computed on the service side.
"""

from fastapi.testclient import TestClient


def create_cart(client: TestClient) -> str:
    response = client.post("/api/carts")
    assert response.status_code == 200
    return response.json()["cart"]["id"]


def add(client: TestClient, cart_id: str, merchandise_id: str, quantity: int) -> dict:
    response = client.post(
        f"/api/carts/{cart_id}/lines",
        json={"lines": [{"merchandise_id": merchandise_id, "quantity": quantity}]},
    )
    assert response.status_code == 200
    return response.json()


class TestLines:

    def test_new_cart_is_empty(self, cart_service_client: TestClient):
        response = cart_service_client.post("/api/carts")

        data = response.json()
        assert data["errors"] == []
        assert data["cart"]["lines"] == []
        assert data["cart"]["total_quantity"] == 0
        assert data["cart"]["checkout_url"].startswith("https://shop.test/checkouts/")

    def test_add_line_prices_on_service_side(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)

        data = add(cart_service_client, cart_id, "variant-003", 2)

        cart = data["cart"]
        assert len(cart["lines"]) == 1
        line = cart["lines"][0]
        assert line["quantity"] == 2
        assert line["cost"]["amount_per_quantity"]["amount"] == "10.00"
        assert line["cost"]["total_amount"]["amount"] == "20.00"
        assert cart["cost"]["subtotal_amount"]["amount"] == "20.00"
        assert cart["cost"]["total_tax_amount"]["amount"] == "1.75"
        assert cart["cost"]["total_amount"]["amount"] == "21.75"
        assert cart["total_quantity"] == 2

    def test_adding_same_merchandise_merges_lines(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)
        add(cart_service_client, cart_id, "variant-003", 1)

        data = add(cart_service_client, cart_id, "variant-003", 2)

        assert len(data["cart"]["lines"]) == 1
        assert data["cart"]["lines"][0]["quantity"] == 3

    def test_unknown_merchandise_is_a_field_error(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)

        data = add(cart_service_client, cart_id, "variant-404", 1)

        assert data["cart"]["lines"] == []
        assert data["errors"][0]["code"] == "INVALID_MERCHANDISE_LINE"

    def test_update_beyond_inventory_leaves_cart_unchanged(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)
        line_id = add(cart_service_client, cart_id, "variant-004", 2)["cart"]["lines"][0]["id"]

        response = cart_service_client.patch(
            f"/api/carts/{cart_id}/lines",
            json={"lines": [{"id": line_id, "quantity": 6}]},
        )

        data = response.json()
        assert data["errors"][0]["code"] == "INSUFFICIENT_INVENTORY"
        assert data["errors"][0]["field"] == ["lines", "0", "quantity"]
        assert data["cart"]["lines"][0]["quantity"] == 2

    def test_update_to_zero_removes_line(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)
        line_id = add(cart_service_client, cart_id, "variant-003", 2)["cart"]["lines"][0]["id"]

        response = cart_service_client.patch(
            f"/api/carts/{cart_id}/lines",
            json={"lines": [{"id": line_id, "quantity": 0}]},
        )

        assert response.json()["cart"]["lines"] == []
        assert response.json()["cart"]["total_quantity"] == 0

    def test_remove_lines(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)
        add(cart_service_client, cart_id, "variant-003", 1)
        lines = add(cart_service_client, cart_id, "variant-002", 1)["cart"]["lines"]

        response = cart_service_client.request(
            "DELETE",
            f"/api/carts/{cart_id}/lines",
            json={"line_ids": [lines[0]["id"]]},
        )

        remaining = response.json()["cart"]["lines"]
        assert [line["merchandise"]["id"] for line in remaining] == ["variant-002"]

    def test_remove_unknown_line_is_a_field_error(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)

        response = cart_service_client.request(
            "DELETE",
            f"/api/carts/{cart_id}/lines",
            json={"line_ids": ["line-missing"]},
        )

        assert response.json()["errors"][0]["code"] == "INVALID_CART_LINE"

    def test_unknown_cart_is_404(self, cart_service_client: TestClient):
        response = cart_service_client.get("/api/carts/does-not-exist")

        assert response.status_code == 404


class TestCodes:

    def test_discount_below_minimum_is_inapplicable(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)
        add(cart_service_client, cart_id, "variant-003", 2)

        response = cart_service_client.put(
            f"/api/carts/{cart_id}/discount-codes",
            json={"discount_codes": ["SAVE10"]},
        )

        cart = response.json()["cart"]
        assert cart["discount_codes"] == [{"code": "SAVE10", "applicable": False}]
        assert cart["cost"]["total_amount"]["amount"] == "21.75"

    def test_applicable_discount_reduces_total(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)
        add(cart_service_client, cart_id, "variant-003", 6)

        response = cart_service_client.put(
            f"/api/carts/{cart_id}/discount-codes",
            json={"discount_codes": ["save10"]},
        )

        cart = response.json()["cart"]
        assert cart["discount_codes"] == [{"code": "save10", "applicable": True}]
        assert cart["cost"]["subtotal_amount"]["amount"] == "60.00"
        assert cart["cost"]["total_tax_amount"]["amount"] == "4.73"
        assert cart["cost"]["total_amount"]["amount"] == "58.73"

    def test_unknown_discount_is_kept_but_inapplicable(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)
        add(cart_service_client, cart_id, "variant-003", 2)

        response = cart_service_client.put(
            f"/api/carts/{cart_id}/discount-codes",
            json={"discount_codes": ["FREESTUFF"]},
        )

        data = response.json()
        assert data["errors"] == []
        assert data["cart"]["discount_codes"] == [{"code": "FREESTUFF", "applicable": False}]

    def test_gift_card_is_reported_by_last_characters(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)
        add(cart_service_client, cart_id, "variant-003", 2)

        response = cart_service_client.put(
            f"/api/carts/{cart_id}/gift-card-codes",
            json={"gift_card_codes": ["ABCD1234"]},
        )

        assert "ABCD1234" not in response.text
        cart = response.json()["cart"]
        assert cart["applied_gift_cards"][0]["last_characters"] == "1234"
        assert cart["applied_gift_cards"][0]["amount_used"]["amount"] == "21.75"
        assert cart["cost"]["total_amount"]["amount"] == "0.00"

    def test_invalid_gift_card_is_a_field_error(self, cart_service_client: TestClient):
        cart_id = create_cart(cart_service_client)

        response = cart_service_client.put(
            f"/api/carts/{cart_id}/gift-card-codes",
            json={"gift_card_codes": ["NOTACARD"]},
        )

        data = response.json()
        assert data["errors"][0]["code"] == "GIFT_CARD_NOT_FOUND"
        assert data["cart"]["applied_gift_cards"] == []
