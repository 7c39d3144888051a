"""Shared pytest fixtures for cart service, client, coalescer and route tests."""

import asyncio
from decimal import Decimal
from typing import Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from cart_service.database.carts import CartDatabase
from cart_service.database.products import ProductDatabase
from cart_service.main import app as cart_service_app
from cart_service.routes.cart import get_cart_db
from commerce.models import (
    Cart,
    CartCost,
    CartLine,
    CartLineCost,
    CartResult,
    Merchandise,
    Money,
)
from storefront.cart import CartMutationCoalescer, CartState
from storefront.core.session import SessionManager
from storefront.main import create_app
from storefront.services.cart_client import CartClient

CART_SERVICE_URL = "http://cart-service.test"


def money(amount: str) -> Money:
    return Money(amount=Decimal(amount))


def make_line(line_id: str, quantity: int, unit_price: str = "10.00") -> CartLine:
    total = Decimal(unit_price) * quantity
    return CartLine(
        id=line_id,
        merchandise=Merchandise(id=f"variant-{line_id}", product_title=f"Product {line_id}"),
        quantity=quantity,
        cost=CartLineCost(
            amount_per_quantity=money(unit_price),
            subtotal_amount=Money(amount=total),
            total_amount=Money(amount=total),
        ),
    )


def make_cart(*lines: CartLine, total: Optional[str] = None, **fields) -> Cart:
    """Cart as the cart service would report it"""
    subtotal = sum((line.cost.total_amount.amount for line in lines), Decimal("0"))
    return Cart(
        id="cart-1",
        lines=list(lines),
        cost=CartCost(
            subtotal_amount=Money(amount=subtotal),
            total_tax_amount=money("0.00"),
            total_amount=money(total) if total else Money(amount=subtotal),
        ),
        checkout_url="https://shop.test/checkouts/cart-1",
        total_quantity=sum(line.quantity for line in lines),
        **fields,
    )


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run up to their next suspension point"""
    for _ in range(rounds):
        await asyncio.sleep(0)


class PendingCall:
    """A request the test answers explicitly"""

    def __init__(self, method: str, cart_id: str, args: tuple):
        self.method = method
        self.cart_id = cart_id
        self.args = args
        self.future = asyncio.get_running_loop().create_future()
        self.cancelled = False

    def respond(self, result: CartResult) -> None:
        if not self.future.done():
            self.future.set_result(result)

    def fail(self, error: Exception) -> None:
        if not self.future.done():
            self.future.set_exception(error)


class ScriptedCartClient:
    """
    Cart client whose mutation responses are released by the test.

    With ``ignore_cancel`` a request keeps running after it is cancelled,
    like one that already reached the service, so its response can still
    arrive late.
    """

    def __init__(self, cart: Cart, ignore_cancel: bool = False):
        self.cart = cart
        self.ignore_cancel = ignore_cancel
        self.calls: list[PendingCall] = []
        self.created = 0
        self.fetches = 0

    async def close(self) -> None:
        pass

    async def create_cart(self) -> CartResult:
        self.created += 1
        return CartResult(cart=self.cart)

    async def get_cart(self, cart_id: str) -> CartResult:
        self.fetches += 1
        return CartResult(cart=self.cart)

    async def _call(self, method: str, cart_id: str, *args) -> CartResult:
        call = PendingCall(method, cart_id, args)
        self.calls.append(call)
        while True:
            try:
                return await asyncio.shield(call.future)
            except asyncio.CancelledError:
                call.cancelled = True
                if not self.ignore_cancel:
                    raise

    async def add_lines(self, cart_id, lines):
        return await self._call("add_lines", cart_id, lines)

    async def update_lines(self, cart_id, lines):
        return await self._call("update_lines", cart_id, lines)

    async def remove_lines(self, cart_id, line_ids):
        return await self._call("remove_lines", cart_id, line_ids)

    async def update_discount_codes(self, cart_id, codes):
        return await self._call("update_discount_codes", cart_id, codes)

    async def update_gift_card_codes(self, cart_id, codes):
        return await self._call("update_gift_card_codes", cart_id, codes)


@pytest.fixture
def one_line_cart() -> Cart:
    """One line, quantity 2, $10 per unit"""
    return make_cart(make_line("line-1", 2))


@pytest.fixture
def cart_state(one_line_cart: Cart) -> CartState:
    return CartState(cart_id=one_line_cart.id, snapshot=one_line_cart)


@pytest.fixture
def scripted_client(one_line_cart: Cart) -> ScriptedCartClient:
    return ScriptedCartClient(one_line_cart)


@pytest.fixture
def coalescer(scripted_client: ScriptedCartClient, cart_state: CartState) -> CartMutationCoalescer:
    return CartMutationCoalescer(client=scripted_client, state=cart_state)


@pytest.fixture
def cart_db() -> CartDatabase:
    """Fresh cart storage per test"""
    return CartDatabase(products=ProductDatabase(), checkout_base_url="https://shop.test")


@pytest.fixture
def cart_service(cart_db: CartDatabase):
    """Cart service app bound to the per-test storage"""
    cart_service_app.dependency_overrides[get_cart_db] = lambda: cart_db
    yield cart_service_app
    cart_service_app.dependency_overrides.clear()


@pytest.fixture
def cart_service_client(cart_service) -> TestClient:
    return TestClient(cart_service)


@pytest.fixture
def cart_client(cart_service) -> CartClient:
    """Storefront cart client talking to the in-process cart service"""
    return CartClient(
        base_url=CART_SERVICE_URL,
        transport=httpx.ASGITransport(app=cart_service),
    )


@pytest.fixture
def storefront(cart_client: CartClient):
    """Storefront test client; cookies carry the session between requests"""
    app = create_app(cart_client=cart_client, sessions=SessionManager())
    with TestClient(app) as client:
        yield client
