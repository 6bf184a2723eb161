# muchshop/api/routers/checkout.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from muchshop.api.deps import get_cart_service, get_session
from muchshop.domain.schemas import OrderType, SessionContext, TimeSlot, Totals
from muchshop.services.cart_service import CartService
from muchshop.services.checkout_service import available_pickup_slots
from muchshop.services.order_service import calculate_totals

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get("/slots", response_model=List[TimeSlot])
def pickup_slots(day: date | None = Query(None)):
    return available_pickup_slots(day or date.today())


@router.get("/totals", response_model=Totals)
def totals(
    order_type: OrderType = Query(...),
    session: SessionContext = Depends(get_session),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return calculate_totals(svc.get_lines(session), order_type)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
