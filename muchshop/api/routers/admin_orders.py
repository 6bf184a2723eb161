# muchshop/api/routers/admin_orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from muchshop.api.deps import get_order_service, require_admin
from muchshop.domain.errors import InvalidTransition
from muchshop.domain.schemas import (
    NotesIn,
    OrderOut,
    OrderStatus,
    StatusChangeIn,
    StatusCountsOut,
)
from muchshop.services.order_service import OrderService
from muchshop.utils.settings import ORDERS_LIST_LIMIT

router = APIRouter(
    prefix="/admin/orders",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=List[OrderOut])
def list_orders(
    status: OrderStatus | None = Query(None),
    limit: int = Query(ORDERS_LIST_LIMIT, gt=0, le=500),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(status=status, limit=limit)


@router.get("/counts", response_model=StatusCountsOut)
def status_counts(svc: OrderService = Depends(get_order_service)):
    return {"counts": svc.status_counts()}


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, svc: OrderService = Depends(get_order_service)):
    try:
        return svc.get_order(order_id, is_admin=True)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{order_id}/next-statuses", response_model=List[OrderStatus])
def next_statuses(order_id: str, svc: OrderService = Depends(get_order_service)):
    try:
        return svc.next_statuses(order_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{order_id}/status", response_model=OrderOut)
def change_status(
    order_id: str,
    payload: StatusChangeIn,
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.apply_status_change(order_id, payload.status)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/{order_id}/notes", response_model=OrderOut)
def update_notes(
    order_id: str,
    payload: NotesIn,
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.update_order_notes(order_id, payload.notes)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
