# muchshop/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from muchshop.api.deps import get_cart_service, get_session
from muchshop.api.routers.products import load_product
from muchshop.data.database import get_db
from muchshop.domain.errors import Unauthenticated
from muchshop.domain.schemas import (
    CartOut,
    ItemIn,
    MergeIn,
    Product,
    QuantityIn,
    SessionContext,
)
from muchshop.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def check_stock(product: Product, quantity: int):
    # the cart itself has no stock cap, the shop front does
    if product.stock <= 0:
        raise HTTPException(status_code=409, detail=f"{product.name} is out of stock")
    if quantity > product.stock:
        raise HTTPException(status_code=409, detail=f"Only {product.stock} available")


@router.get("/me", response_model=CartOut)
def get_cart(
    session: SessionContext = Depends(get_session),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.get_cart(session)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/me/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    session: SessionContext = Depends(get_session),
    svc: CartService = Depends(get_cart_service),
    db: Session = Depends(get_db),
):
    product = load_product(db, payload.product_id)
    try:
        in_cart = next((l.quantity for l in svc.get_lines(session) if l.product_id == product.id), 0)
        check_stock(product, in_cart + payload.quantity)
        return svc.add_item(session, product, payload.quantity)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/me/items/{product_id}", response_model=CartOut)
def set_quantity(
    product_id: str,
    payload: QuantityIn,
    session: SessionContext = Depends(get_session),
    svc: CartService = Depends(get_cart_service),
    db: Session = Depends(get_db),
):
    if payload.quantity > 0:
        check_stock(load_product(db, product_id), payload.quantity)
    try:
        return svc.set_quantity(session, product_id, payload.quantity)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/me/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: str,
    session: SessionContext = Depends(get_session),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.remove_item(session, product_id)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/me", response_model=CartOut)
def clear_cart(
    session: SessionContext = Depends(get_session),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.clear(session)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/me/merge", response_model=CartOut)
def merge_guest_cart(
    payload: MergeIn,
    session: SessionContext = Depends(get_session),
    svc: CartService = Depends(get_cart_service),
):
    """Called right after sign in, moves the guest cart into the user's cart."""
    try:
        return svc.merge_guest_cart(session, payload.guest_id)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
