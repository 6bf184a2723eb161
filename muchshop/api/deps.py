# muchshop/api/deps.py
from functools import lru_cache

import redis
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from muchshop.data.database import get_db
from muchshop.domain.schemas import SessionContext
from muchshop.repos.cart_repo import RemoteCartRepo
from muchshop.repos.favorite_repo import FavoriteRepo
from muchshop.repos.local_store import LocalCartRepo, LocalWishlistRepo, get_redis
from muchshop.services.cart_events import CartEvents, cart_events
from muchshop.services.cart_service import CartService
from muchshop.services.order_feed import OrderFeed, order_feed
from muchshop.services.order_service import OrderService
from muchshop.services.user_service import UserService
from muchshop.services.wishlist_service import WishlistService


def get_session(
    x_user_id: str | None = Header(None),
    x_user_email: str | None = Header(None),
    x_user_anonymous: bool = Header(False),
    x_guest_id: str | None = Header(None),
) -> SessionContext:
    """Identity forwarded by the auth gateway, guests only send X-Guest-Id."""
    return SessionContext(
        uid=x_user_id,
        email=x_user_email,
        is_anonymous=x_user_anonymous,
        guest_id=x_guest_id,
    )


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    return get_redis()


def get_cart_events() -> CartEvents:
    return cart_events


def get_order_feed() -> OrderFeed:
    return order_feed


def get_cart_service(
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis_client),
    events: CartEvents = Depends(get_cart_events),
) -> CartService:
    return CartService(
        local_repo=LocalCartRepo(client),
        remote_repo=RemoteCartRepo(db),
        events=events,
    )


def get_wishlist_service(
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis_client),
) -> WishlistService:
    return WishlistService(local_repo=LocalWishlistRepo(client), remote_repo=FavoriteRepo(db))


def get_order_service(
    db: Session = Depends(get_db),
    feed: OrderFeed = Depends(get_order_feed),
) -> OrderService:
    return OrderService(db, feed=feed)


def require_admin(
    session: SessionContext = Depends(get_session),
    db: Session = Depends(get_db),
) -> SessionContext:
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Sign in required")
    if not UserService(db).is_admin(session.uid):
        raise HTTPException(status_code=403, detail="Admin access required")
    return session
