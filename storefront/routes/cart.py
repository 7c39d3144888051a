"""Cart routes for the storefront"""

import logging
import os
from enum import Enum
from typing import Any, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ValidationError

from ..cart import (
    CartMutationCoalescer,
    ControlDisabledError,
    LineNotFoundError,
    MutationOutcome,
    OutcomeStatus,
    UnsupportedMutationError,
    build_cart_view,
    discount_submission,
    gift_card_submission,
)
from ..cart.view import CartView
from ..core.config import settings
from ..core.session import UserSession
from ..services.cart_client import CartClient, CartServiceError

logger = logging.getLogger(__name__)

templates = Jinja2Templates(
    directory=os.path.join(os.path.dirname(__file__), "..", "templates")
)

router = APIRouter(tags=["Cart"])


def get_session(request: Request) -> UserSession:
    """Session attached by SessionMiddleware"""
    return request.state.session


def get_cart_client(request: Request) -> CartClient:
    """Cart service client owned by the application"""
    return request.app.state.cart_client


def get_coalescer(
    session: UserSession = Depends(get_session),
    client: CartClient = Depends(get_cart_client),
) -> CartMutationCoalescer:
    """Coalescer bound to the visitor's cart state"""
    return CartMutationCoalescer(client=client, state=session.cart)


class CartActionRequest(BaseModel):
    """Generic cart action, e.g. {"action": "update", "inputs": {"lines": [...]}}"""
    action: str
    inputs: dict[str, Any] = {}


class DiscountCodeRequest(BaseModel):
    discount_code: Optional[str] = None


class GiftCardCodesRequest(BaseModel):
    gift_card_codes: list[str] = []


class MutationResponse(BaseModel):
    outcome: dict[str, Any]
    cart: CartView


def _mutation_response(
    coalescer: CartMutationCoalescer,
    outcome: MutationOutcome,
) -> JSONResponse:
    view = build_cart_view(coalescer.projected(), coalescer.state)
    body = MutationResponse(outcome=outcome.to_dict(), cart=view)
    status_code = 502 if outcome.status == OutcomeStatus.FAILED else 200
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def _load(coalescer: CartMutationCoalescer):
    try:
        return await coalescer.load()
    except CartServiceError as e:
        logger.error(f"Failed to load cart: {e}")
        raise HTTPException(status_code=502, detail="Cart service unavailable")


async def _submit(coalescer: CartMutationCoalescer, kind, payload) -> JSONResponse:
    try:
        outcome = await coalescer.submit(kind, payload)
    except UnsupportedMutationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))
    return _mutation_response(coalescer, outcome)


class LineControl(str, Enum):
    INCREMENT = "increment"
    DECREMENT = "decrement"
    REMOVE = "remove"


def _line_submission(coalescer: CartMutationCoalescer, line_id: str, control: LineControl):
    """Mutation for one activation of a line control"""
    try:
        controls = coalescer.line_controls(line_id)
        return getattr(controls, control.value)()
    except ControlDisabledError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LineNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _back_to_cart() -> RedirectResponse:
    return RedirectResponse(url="/cart", status_code=303)


@router.get("/cart", response_class=HTMLResponse)
async def cart_page(
    request: Request,
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    """Cart page, fetched fresh on every load"""
    cart = await _load(coalescer)
    view = build_cart_view(cart, coalescer.state)
    return templates.TemplateResponse(
        request,
        "cart.html",
        {"title": settings.app_name, "view": view},
    )


# ==================== Cart page forms ====================

@router.post("/cart/lines/{line_id}/{control}")
async def line_control_form(
    line_id: str,
    control: LineControl,
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    """Quantity and remove buttons of the cart page"""
    kind, payload = _line_submission(coalescer, line_id, control)
    await coalescer.submit(kind, payload)
    return _back_to_cart()


@router.post("/cart/discount-codes")
async def discount_code_form(
    discount_code: Optional[str] = Form(None),
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    kind, payload = discount_submission(discount_code)
    await coalescer.submit(kind, payload)
    return _back_to_cart()


@router.post("/cart/gift-card-codes")
async def gift_card_code_form(
    gift_card_code: Optional[str] = Form(None),
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    kind, payload = gift_card_submission([gift_card_code] if gift_card_code else [])
    await coalescer.submit(kind, payload)
    return _back_to_cart()


# ==================== JSON API ====================

@router.get("/api/cart", response_model=CartView)
async def get_cart(coalescer: CartMutationCoalescer = Depends(get_coalescer)):
    """Current cart as displayed, including pending changes"""
    cart = await _load(coalescer)
    return build_cart_view(cart, coalescer.state)


@router.post("/api/cart", response_model=MutationResponse)
async def cart_action(
    request: CartActionRequest,
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    """Submit any cart mutation by kind"""
    return await _submit(coalescer, request.action, request.inputs)


@router.post("/api/cart/lines/{line_id}/increment", response_model=MutationResponse)
async def increment_line(
    line_id: str,
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    """Increase a line's quantity by one"""
    kind, payload = _line_submission(coalescer, line_id, LineControl.INCREMENT)
    return await _submit(coalescer, kind, payload)


@router.post("/api/cart/lines/{line_id}/decrement", response_model=MutationResponse)
async def decrement_line(
    line_id: str,
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    """Decrease a line's quantity by one; disabled at quantity 1"""
    kind, payload = _line_submission(coalescer, line_id, LineControl.DECREMENT)
    return await _submit(coalescer, kind, payload)


@router.delete("/api/cart/lines/{line_id}", response_model=MutationResponse)
async def remove_line(
    line_id: str,
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    """Remove a line"""
    kind, payload = _line_submission(coalescer, line_id, LineControl.REMOVE)
    return await _submit(coalescer, kind, payload)


@router.post("/api/cart/discount-codes", response_model=MutationResponse)
async def apply_discount_code(
    request: DiscountCodeRequest,
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    """Apply a discount code, or clear codes with a blank one"""
    kind, payload = discount_submission(request.discount_code)
    return await _submit(coalescer, kind, payload)


@router.post("/api/cart/gift-card-codes", response_model=MutationResponse)
async def apply_gift_card_codes(
    request: GiftCardCodesRequest,
    coalescer: CartMutationCoalescer = Depends(get_coalescer),
):
    """Apply gift card codes"""
    kind, payload = gift_card_submission(request.gift_card_codes)
    return await _submit(coalescer, kind, payload)
