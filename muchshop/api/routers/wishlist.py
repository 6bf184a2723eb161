# muchshop/api/routers/wishlist.py
from fastapi import APIRouter, Depends, HTTPException

from muchshop.api.deps import get_session, get_wishlist_service
from muchshop.domain.schemas import SessionContext, ToggleOut, WishlistOut
from muchshop.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=WishlistOut)
def get_wishlist(
    session: SessionContext = Depends(get_session),
    svc: WishlistService = Depends(get_wishlist_service),
):
    try:
        return svc.list(session)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{product_id}/toggle", response_model=ToggleOut)
def toggle(
    product_id: str,
    session: SessionContext = Depends(get_session),
    svc: WishlistService = Depends(get_wishlist_service),
):
    try:
        return svc.toggle(session, product_id)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{product_id}", response_model=WishlistOut)
def add(
    product_id: str,
    session: SessionContext = Depends(get_session),
    svc: WishlistService = Depends(get_wishlist_service),
):
    try:
        return svc.add(session, product_id)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{product_id}", response_model=WishlistOut)
def remove(
    product_id: str,
    session: SessionContext = Depends(get_session),
    svc: WishlistService = Depends(get_wishlist_service),
):
    try:
        return svc.remove(session, product_id)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("", response_model=WishlistOut)
def clear(
    session: SessionContext = Depends(get_session),
    svc: WishlistService = Depends(get_wishlist_service),
):
    try:
        return svc.clear(session)
    except PermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
