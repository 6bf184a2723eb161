import os

# must be set before muchshop reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["ORDERS_WEBHOOK_URL"] = ""
os.environ["DELIVERY_FEE"] = "30"

from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import muchshop.data.models  # noqa: F401
from muchshop.api import create_app
from muchshop.api.deps import get_cart_events, get_order_feed, get_redis_client
from muchshop.data.database import Base, get_db
from muchshop.data.models import ProductModel, UserModel
from muchshop.domain.schemas import SessionContext
from muchshop.repos.cart_repo import RemoteCartRepo
from muchshop.repos.favorite_repo import FavoriteRepo
from muchshop.repos.local_store import LocalCartRepo, LocalWishlistRepo
from muchshop.services.cart_events import CartEvents
from muchshop.services.cart_service import CartService
from muchshop.services.order_feed import OrderFeed
from muchshop.services.wishlist_service import WishlistService


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'muchshop.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def events():
    return CartEvents()


@pytest.fixture
def feed(session_factory):
    return OrderFeed(session_factory)


@pytest.fixture
def cart_service(db, redis_client, events):
    return CartService(LocalCartRepo(redis_client), RemoteCartRepo(db), events)


@pytest.fixture
def wishlist_service(db, redis_client):
    return WishlistService(LocalWishlistRepo(redis_client), FavoriteRepo(db))


@pytest.fixture
def guest():
    return SessionContext(guest_id="guest-1")


@pytest.fixture
def user():
    return SessionContext(uid="u1", email="asha@example.com")


@pytest.fixture
def anonymous():
    return SessionContext(uid="anon-1", is_anonymous=True, guest_id="guest-anon")


@pytest.fixture
def products(db):
    rows = [
        ProductModel(id="p1", name="Tomatoes", category="vegetables", price=Decimal("50"), stock=10, unit="kg"),
        ProductModel(id="p2", name="Toned Milk", category="dairy", price=Decimal("30"), stock=5, unit="ltr"),
        ProductModel(
            id="p3", name="Basmati Rice", category="grains", price=Decimal("140"),
            original_price=Decimal("140"), discounted_price=Decimal("119"), stock=1, unit="kg",
        ),
    ]
    db.add_all(rows)
    db.add(UserModel(uid="admin-1", name="Admin", role="admin"))
    db.commit()
    return {p.id: p for p in rows}


@pytest.fixture
def client(db, redis_client, events, feed):
    app = create_app()

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_redis_client] = lambda: redis_client
    app.dependency_overrides[get_cart_events] = lambda: events
    app.dependency_overrides[get_order_feed] = lambda: feed
    return TestClient(app)
