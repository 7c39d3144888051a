"""
Cart Service Client

HTTP client for the remote cart service. Every call returns the
authoritative cart together with any field-level errors.
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError

from commerce.models import (
    CartLineInput,
    CartLineUpdateInput,
    CartResult,
    DiscountCodesUpdateRequest,
    GiftCardCodesUpdateRequest,
    LinesAddRequest,
    LinesRemoveRequest,
    LinesUpdateRequest,
)

logger = logging.getLogger(__name__)


class CartServiceError(Exception):
    """Base exception for failures reaching the cart service"""
    pass


class CartNotFoundError(CartServiceError):
    """The cart id is unknown to the cart service"""
    pass


class CartClient:
    """
    Client for the remote cart service.

    Usage:
        client = CartClient("http://localhost:8001")
        result = await client.create_cart()
        result = await client.add_lines(result.cart.id, [CartLineInput(...)])
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize cart client.

        Args:
            base_url: Base URL of the cart service
            timeout: Request timeout in seconds
            transport: Optional transport, e.g. to talk to an in-process app
        """
        self.base_url = base_url.rstrip("/")
        self._http_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[BaseModel] = None,
    ) -> CartResult:
        """Make a request and parse the cart result"""
        content = body.model_dump_json() if body is not None else None
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = await self._http_client.request(
                method=method,
                url=path,
                headers=headers,
                content=content,
            )
        except httpx.HTTPError as e:
            logger.error(f"Cart service unreachable: {method} {path} - {e}")
            raise CartServiceError(f"Cart service unreachable: {e}") from e

        if response.status_code == 404:
            raise CartNotFoundError(f"Cart not found: {path}")

        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")
            raise CartServiceError(
                f"Cart service request failed: {response.status_code}"
            )

        try:
            return CartResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise CartServiceError(f"Malformed cart service response: {e}") from e

    # ==================== Cart APIs ====================

    async def create_cart(self) -> CartResult:
        """Create a new cart"""
        return await self._request("POST", "/api/carts")

    async def get_cart(self, cart_id: str) -> CartResult:
        """Get cart by ID"""
        return await self._request("GET", f"/api/carts/{cart_id}")

    async def add_lines(self, cart_id: str, lines: list[CartLineInput]) -> CartResult:
        """Add merchandise lines"""
        return await self._request(
            "POST",
            f"/api/carts/{cart_id}/lines",
            body=LinesAddRequest(lines=lines),
        )

    async def update_lines(
        self,
        cart_id: str,
        lines: list[CartLineUpdateInput],
    ) -> CartResult:
        """Set line quantities"""
        return await self._request(
            "PATCH",
            f"/api/carts/{cart_id}/lines",
            body=LinesUpdateRequest(lines=lines),
        )

    async def remove_lines(self, cart_id: str, line_ids: list[str]) -> CartResult:
        """Remove lines"""
        return await self._request(
            "DELETE",
            f"/api/carts/{cart_id}/lines",
            body=LinesRemoveRequest(line_ids=line_ids),
        )

    async def update_discount_codes(self, cart_id: str, codes: list[str]) -> CartResult:
        """Replace discount codes"""
        return await self._request(
            "PUT",
            f"/api/carts/{cart_id}/discount-codes",
            body=DiscountCodesUpdateRequest(discount_codes=codes),
        )

    async def update_gift_card_codes(self, cart_id: str, codes: list[str]) -> CartResult:
        """Replace gift card codes"""
        return await self._request(
            "PUT",
            f"/api/carts/{cart_id}/gift-card-codes",
            body=GiftCardCodesUpdateRequest(gift_card_codes=codes),
        )
