# muchshop/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from muchshop.api.deps import get_cart_service, get_order_service, get_session
from muchshop.domain.errors import RemoteUnavailable, Unauthenticated
from muchshop.domain.schemas import CheckoutIn, OrderOut, PlaceOrderOut, SessionContext
from muchshop.services.cart_service import CartService
from muchshop.services.order_service import OrderService
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=PlaceOrderOut, status_code=201)
def place_order(
    payload: CheckoutIn,
    session: SessionContext = Depends(get_session),
    carts: CartService = Depends(get_cart_service),
    svc: OrderService = Depends(get_order_service),
):
    """
    Places an order from the current cart.
    The cart is cleared once the order exists.
    """
    try:
        if not session.is_authenticated:
            raise Unauthenticated()
        lines = carts.get_lines(session)
        order_id = svc.place_order(payload.order_type, lines, session, payload)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except RemoteUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    cart = carts.clear(session)
    if cart.warnings:
        logger.warning(f"Cart of {session.uid} cleared locally only after order {order_id}")

    return {"order_id": order_id, "order": svc.get_order(order_id, session)}


@router.get("/mine", response_model=List[OrderOut])
def my_orders(
    session: SessionContext = Depends(get_session),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.list_user_orders(session)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    session: SessionContext = Depends(get_session),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.get_order(order_id, session)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
