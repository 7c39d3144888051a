"""Cart API routes for the cart service"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from commerce.models import (
    CartResult,
    DiscountCodesUpdateRequest,
    GiftCardCodesUpdateRequest,
    LinesAddRequest,
    LinesRemoveRequest,
    LinesUpdateRequest,
)
from ..database.carts import CartDatabase, cart_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/carts", tags=["Cart"])


def get_cart_db() -> CartDatabase:
    """Cart storage dependency"""
    return cart_db


def _found(result, cart_id: str) -> CartResult:
    if result is None:
        raise HTTPException(status_code=404, detail="Cart not found")
    if result.errors:
        logger.info(
            f"Cart {cart_id} mutation rejected: "
            f"{[error.code for error in result.errors]}"
        )
    return result


@router.post("", response_model=CartResult)
async def create_cart(carts: CartDatabase = Depends(get_cart_db)):
    """Create a new shopping cart"""
    cart = carts.create_cart()
    logger.info(f"Created cart {cart.id}")
    return CartResult(cart=cart)


@router.get("/{cart_id}", response_model=CartResult)
async def get_cart(cart_id: str, carts: CartDatabase = Depends(get_cart_db)):
    """Get cart by ID"""
    cart = carts.get_cart(cart_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return CartResult(cart=cart)


@router.post("/{cart_id}/lines", response_model=CartResult)
async def add_lines(
    cart_id: str,
    request: LinesAddRequest,
    carts: CartDatabase = Depends(get_cart_db),
):
    """Add merchandise lines to the cart"""
    return _found(carts.add_lines(cart_id, request.lines), cart_id)


@router.patch("/{cart_id}/lines", response_model=CartResult)
async def update_lines(
    cart_id: str,
    request: LinesUpdateRequest,
    carts: CartDatabase = Depends(get_cart_db),
):
    """Update line quantities"""
    return _found(carts.update_lines(cart_id, request.lines), cart_id)


@router.delete("/{cart_id}/lines", response_model=CartResult)
async def remove_lines(
    cart_id: str,
    request: LinesRemoveRequest,
    carts: CartDatabase = Depends(get_cart_db),
):
    """Remove lines from the cart"""
    return _found(carts.remove_lines(cart_id, request.line_ids), cart_id)


@router.put("/{cart_id}/discount-codes", response_model=CartResult)
async def update_discount_codes(
    cart_id: str,
    request: DiscountCodesUpdateRequest,
    carts: CartDatabase = Depends(get_cart_db),
):
    """Replace the cart's discount codes"""
    return _found(carts.update_discount_codes(cart_id, request.discount_codes), cart_id)


@router.put("/{cart_id}/gift-card-codes", response_model=CartResult)
async def update_gift_card_codes(
    cart_id: str,
    request: GiftCardCodesUpdateRequest,
    carts: CartDatabase = Depends(get_cart_db),
):
    """Replace the cart's gift cards"""
    return _found(carts.update_gift_card_codes(cart_id, request.gift_card_codes), cart_id)
