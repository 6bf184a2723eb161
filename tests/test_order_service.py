from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from muchshop.data.models import OrderModel, ProductModel
from muchshop.domain.errors import InvalidTransition, OrderNotFound, Unauthenticated
from muchshop.domain.schemas import CartLine, CustomerDetails, OrderStatus, OrderType, SessionContext
from muchshop.repos.order_repo import OrderRepo
from muchshop.services.order_service import OrderService, calculate_totals, can_place_order
from muchshop.utils.settings import positive_decimal

PICKUP_AT = datetime(2026, 10, 20, 10, 30)


class RecordingNotifications:
    def __init__(self):
        self.sent = []

    def send_order_notification(self, order):
        self.sent.append(order)


def line(pid, price, qty, name=None):
    return CartLine(product_id=pid, name=name or pid, unit="kg", price=Decimal(price), quantity=qty)


@pytest.fixture
def cart():
    return [line("p1", "50", 2, "Tomatoes"), line("p2", "30", 1, "Toned Milk")]


@pytest.fixture
def details():
    return CustomerDetails(
        customer_name="Asha",
        customer_phone="9876543210",
        pickup_datetime=PICKUP_AT,
        delivery_address="12 MG Road",
        notes="ring twice",
    )


@pytest.fixture
def notifications():
    return RecordingNotifications()


@pytest.fixture
def service(db, feed, notifications):
    return OrderService(db, feed=feed, notification_service=notifications, delivery_fee=Decimal("30"))


def stock_of(db, pid):
    db.expire_all()
    return db.get(ProductModel, pid).stock


def test_pickup_order_totals(service, db, products, cart, user, details, notifications):
    order_id = service.place_order(OrderType.PICKUP, cart, user, details)

    order = service.get_order(order_id, user)
    assert order.subtotal == Decimal("130")
    assert order.delivery_fee == Decimal("0")
    assert order.total == Decimal("130")
    assert order.status == OrderStatus.NEW
    assert order.pickup_datetime is not None
    assert order.delivery_address is None
    assert order.user_email == "asha@example.com"
    assert [(l.product_id, l.qty, l.line_total) for l in order.items] == [
        ("p1", 2, Decimal("100")),
        ("p2", 1, Decimal("30")),
    ]
    assert [o.id for o in notifications.sent] == [order_id]


def test_delivery_order_totals(service, products, cart, user, details):
    order_id = service.place_order(OrderType.DELIVERY, cart, user, details)

    order = service.get_order(order_id, user)
    assert order.subtotal == Decimal("130")
    assert order.delivery_fee == Decimal("30")
    assert order.total == Decimal("160")
    assert order.delivery_address == "12 MG Road"
    assert order.pickup_datetime is None


def test_calculate_totals(cart):
    assert calculate_totals(cart, OrderType.PICKUP, Decimal("30")).total == Decimal("130")
    totals = calculate_totals(cart, OrderType.DELIVERY, Decimal("30"))
    assert (totals.subtotal, totals.delivery_fee, totals.total) == (Decimal("130"), Decimal("30"), Decimal("160"))


def test_order_uses_snapshotted_cart_price(service, db, products, user, details):
    products["p1"].price = Decimal("99")
    db.commit()

    order_id = service.place_order(OrderType.PICKUP, [line("p1", "50", 1)], user, details)

    assert service.get_order(order_id, user).items[0].price == Decimal("50")


@pytest.mark.parametrize("session", [None, SessionContext(uid="anon", is_anonymous=True), SessionContext(guest_id="g")])
def test_unauthenticated_session_writes_nothing(service, db, products, cart, details, session, notifications):
    assert can_place_order(session) is False

    with pytest.raises(Unauthenticated):
        service.place_order(OrderType.PICKUP, cart, session, details)

    assert db.query(OrderModel).count() == 0
    assert stock_of(db, "p1") == 10
    assert notifications.sent == []


def test_empty_cart_is_rejected(service, db, user, details):
    with pytest.raises(ValueError):
        service.place_order(OrderType.PICKUP, [], user, details)
    assert db.query(OrderModel).count() == 0


def test_stock_is_decremented(service, db, products, cart, user, details):
    service.place_order(OrderType.PICKUP, cart, user, details)

    assert stock_of(db, "p1") == 8
    assert stock_of(db, "p2") == 4


def test_insufficient_stock_keeps_order_and_stock(service, db, products, user, details, caplog):
    order_id = service.place_order(OrderType.PICKUP, [line("p3", "119", 2, "Basmati Rice")], user, details)

    assert db.get(OrderModel, order_id) is not None
    assert stock_of(db, "p3") == 1
    assert "INSUFFICIENT STOCK" in caplog.text
    assert "p3" in caplog.text


def test_stock_transaction_is_all_or_nothing(service, db, products, user, details):
    service.place_order(OrderType.PICKUP, [line("p1", "50", 2), line("p3", "119", 2)], user, details)

    assert stock_of(db, "p1") == 10
    assert stock_of(db, "p3") == 1


def test_untracked_products_are_skipped(service, db, products, user, details):
    order_id = service.place_order(OrderType.PICKUP, [line("ghost", "10", 1), line("p2", "30", 2)], user, details)

    assert db.get(OrderModel, order_id) is not None
    assert stock_of(db, "p2") == 3


def test_stock_conflict_is_retried(service, db, products, user, details, monkeypatch):
    repo = service.inventory.repo
    real = repo.compare_and_set_stock
    calls = []

    def flaky(product_id, expected, new_stock):
        calls.append(product_id)
        if len(calls) == 1:
            return 0
        return real(product_id, expected, new_stock)

    monkeypatch.setattr(repo, "compare_and_set_stock", flaky)

    service.place_order(OrderType.PICKUP, [line("p1", "50", 3)], user, details)

    assert calls == ["p1", "p1"]
    assert stock_of(db, "p1") == 7


def test_status_lifecycle(service, products, cart, user, details):
    order_id = service.place_order(OrderType.PICKUP, cart, user, details)

    assert service.next_statuses(order_id) == [OrderStatus.PROCESSING, OrderStatus.CANCELLED]

    processing = service.apply_status_change(order_id, OrderStatus.PROCESSING)
    assert processing.status == OrderStatus.PROCESSING
    assert processing.updated_at is not None

    completed = service.apply_status_change(order_id, OrderStatus.COMPLETED)
    assert completed.status == OrderStatus.COMPLETED
    assert service.next_statuses(order_id) == []

    with pytest.raises(InvalidTransition):
        service.apply_status_change(order_id, OrderStatus.CANCELLED)


def test_illegal_transition_leaves_order_untouched(service, products, cart, user, details):
    order_id = service.place_order(OrderType.PICKUP, cart, user, details)

    with pytest.raises(InvalidTransition):
        service.apply_status_change(order_id, OrderStatus.COMPLETED)
    with pytest.raises(InvalidTransition):
        service.apply_status_change(order_id, OrderStatus.NEW)

    order = service.get_order(order_id, is_admin=True)
    assert order.status == OrderStatus.NEW
    assert order.updated_at is None


def test_status_write_is_conditional(service, db, products, cart, user, details):
    order_id = service.place_order(OrderType.PICKUP, cart, user, details)

    # a stale client trying to complete an order still in NEW
    assert OrderRepo(db).update_order_status(order_id, "COMPLETED", allowed_from=["PROCESSING"]) == 0
    assert OrderRepo(db).update_order_status(order_id, "COMPLETED", allowed_from=[]) == 0
    assert service.get_order(order_id, is_admin=True).status == OrderStatus.NEW


def test_unknown_order(service):
    with pytest.raises(OrderNotFound):
        service.apply_status_change("nope", OrderStatus.PROCESSING)
    with pytest.raises(OrderNotFound):
        service.get_order("nope", is_admin=True)


def test_order_visible_only_to_owner(service, products, cart, user, details):
    order_id = service.place_order(OrderType.PICKUP, cart, user, details)

    with pytest.raises(PermissionError):
        service.get_order(order_id, SessionContext(uid="someone-else"))
    assert service.get_order(order_id, is_admin=True).id == order_id


def test_update_notes(service, products, cart, user, details):
    order_id = service.place_order(OrderType.PICKUP, cart, user, details)

    order = service.update_order_notes(order_id, "customer called, will be late")

    assert order.notes == "customer called, will be late"
    assert order.updated_at is not None
    assert order.status == OrderStatus.NEW


def test_listing_and_counts(service, products, cart, user, details):
    first = service.place_order(OrderType.PICKUP, cart, user, details)
    service.place_order(OrderType.DELIVERY, cart, SessionContext(uid="u2"), details)
    service.apply_status_change(first, OrderStatus.CANCELLED)

    assert [o.id for o in service.list_user_orders(user)] == [first]
    assert len(service.list_orders()) == 2
    assert [o.id for o in service.list_orders(status=OrderStatus.CANCELLED)] == [first]
    assert service.status_counts() == {"ALL": 2, "NEW": 1, "PROCESSING": 0, "COMPLETED": 0, "CANCELLED": 1}


def test_feed_delivers_full_snapshots(service, feed, products, cart, user, details):
    snapshots = []
    unsubscribe = feed.listen_orders(lambda orders: snapshots.append([o.status for o in orders]))

    order_id = service.place_order(OrderType.PICKUP, cart, user, details)
    service.apply_status_change(order_id, OrderStatus.PROCESSING)
    unsubscribe()
    service.apply_status_change(order_id, OrderStatus.COMPLETED)

    assert snapshots == [[], [OrderStatus.NEW], [OrderStatus.PROCESSING]]
    assert len(feed) == 0


def test_feed_single_order_and_user_history(service, feed, products, cart, user, details):
    order_id = service.place_order(OrderType.PICKUP, cart, user, details)
    seen, history = [], []
    stop_order = feed.listen_order(order_id, lambda o: seen.append(o.status if o else None))
    stop_history = feed.listen_user_orders("u1", lambda orders: history.append(len(orders)))
    missing = []
    stop_missing = feed.listen_order("nope", missing.append)

    service.apply_status_change(order_id, OrderStatus.CANCELLED)
    service.place_order(OrderType.DELIVERY, cart, user, details)

    for stop in (stop_order, stop_history, stop_missing):
        stop()

    assert seen == [OrderStatus.NEW, OrderStatus.CANCELLED, OrderStatus.CANCELLED]
    assert history == [1, 1, 2]
    assert missing == [None, None, None]


def test_broken_feed_listener_does_not_fail_placement(service, feed, db, products, cart, user, details, caplog):
    deliveries = []

    def breaks_on_update(orders):
        deliveries.append(len(orders))
        if len(deliveries) > 1:
            raise RuntimeError("view broke")

    healthy = []
    feed.listen_orders(breaks_on_update)
    feed.listen_orders(lambda orders: healthy.append(len(orders)))

    order_id = service.place_order(OrderType.PICKUP, cart, user, details)

    assert db.get(OrderModel, order_id) is not None
    assert deliveries == [0, 1]
    assert healthy == [0, 1]
    assert "Order feed listener" in caplog.text


def test_delivery_fee_must_be_positive(db, monkeypatch):
    with pytest.raises(ValueError):
        OrderService(db, delivery_fee=Decimal("0"))

    monkeypatch.setenv("DELIVERY_FEE", "0")
    with pytest.raises(ValueError):
        positive_decimal("DELIVERY_FEE", "30")

    monkeypatch.setenv("DELIVERY_FEE", "45.50")
    assert positive_decimal("DELIVERY_FEE", "30") == Decimal("45.50")
