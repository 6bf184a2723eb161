import json
from decimal import Decimal

import pytest
from redis.exceptions import RedisError
from sqlalchemy.exc import OperationalError

from muchshop.domain.errors import Unauthenticated
from muchshop.domain.schemas import CartLine, Product, SessionContext
from muchshop.repos.local_store import LocalCartRepo
from muchshop.services.cart_service import FALLBACK_WARNING


def product(pid="p1", name="Tomatoes", price="50", **kw):
    return Product(id=pid, name=name, price=Decimal(price), unit="kg", stock=10, **kw)


def db_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def lines_of(view):
    return [(l.product_id, l.quantity, l.price) for l in view.items]


def test_guest_cart_uses_local_store(cart_service, guest, redis_client):
    view = cart_service.add_item(guest, product(), 2)

    assert view.source == "local"
    assert lines_of(view) == [("p1", 2, Decimal("50"))]
    blob = json.loads(redis_client.get("muchshop_cart:guest-1"))
    assert blob == [{"id": "p1", "name": "Tomatoes", "price": "50", "unit": "kg", "image": None, "quantity": 2}]


def test_add_existing_line_accumulates_and_resnapshots_price(cart_service, guest):
    cart_service.add_item(guest, product(price="50"), 1)
    view = cart_service.add_item(guest, product(price="45"), 2)

    assert lines_of(view) == [("p1", 3, Decimal("45"))]


def test_add_uses_effective_discounted_price(cart_service, guest):
    view = cart_service.add_item(
        guest, product(pid="p3", price="140", original_price=Decimal("140"), discounted_price=Decimal("119")), 1
    )
    assert view.items[0].price == Decimal("119")


def test_add_rejects_non_positive_quantity(cart_service, guest):
    with pytest.raises(ValueError):
        cart_service.add_item(guest, product(), 0)


def test_set_quantity_does_not_resnapshot_price(cart_service, guest):
    cart_service.add_item(guest, product(price="50"), 1)
    view = cart_service.set_quantity(guest, "p1", 4)

    assert lines_of(view) == [("p1", 4, Decimal("50"))]


def test_set_quantity_is_idempotent(cart_service, guest):
    cart_service.add_item(guest, product(), 1)
    cart_service.add_item(guest, product("p2", "Milk", "30"), 1)

    once = cart_service.set_quantity(guest, "p1", 3)
    twice = cart_service.set_quantity(guest, "p1", 3)

    assert lines_of(once) == lines_of(twice)


def test_set_quantity_zero_removes_line(cart_service, guest):
    cart_service.add_item(guest, product(), 2)
    view = cart_service.set_quantity(guest, "p1", 0)

    assert view.items == []
    assert view.item_count == 0


def test_set_quantity_unknown_product_is_noop(cart_service, guest):
    cart_service.add_item(guest, product(), 2)
    view = cart_service.set_quantity(guest, "missing", 5)

    assert lines_of(view) == [("p1", 2, Decimal("50"))]


def test_add_then_remove_restores_cart(cart_service, guest):
    cart_service.add_item(guest, product("p2", "Milk", "30"), 2)
    before = lines_of(cart_service.get_cart(guest))

    cart_service.add_item(guest, product(), 1)
    after = cart_service.remove_item(guest, "p1")

    assert lines_of(after) == before


def test_totals_and_count(cart_service, guest):
    cart_service.add_item(guest, product(), 2)
    cart_service.add_item(guest, product("p2", "Milk", "30"), 1)

    assert cart_service.get_total(guest) == Decimal("130")
    assert cart_service.get_item_count(guest) == 3


def test_clear(cart_service, guest):
    cart_service.add_item(guest, product(), 2)
    view = cart_service.clear(guest)

    assert view.items == []
    assert cart_service.get_cart(guest).items == []


def test_missing_owner_is_rejected(cart_service):
    with pytest.raises(PermissionError):
        cart_service.get_cart(SessionContext())


def test_authenticated_cart_is_remote_and_mirrored(cart_service, user, db):
    view = cart_service.add_item(user, product(), 2)

    assert view.source == "remote"
    assert view.warnings == []
    assert lines_of(view) == [("p1", 2, Decimal("50"))]
    assert cart_service.remote.get_line("u1", "p1").quantity == 2
    mirror = cart_service.local.list_lines("u1")
    assert [(l.product_id, l.quantity) for l in mirror] == [("p1", 2)]


def test_anonymous_session_uses_local_store(cart_service, anonymous):
    view = cart_service.add_item(anonymous, product(), 1)

    assert view.source == "local"
    assert view.owner == "guest-anon"


def test_remote_failure_falls_back_to_local(cart_service, user, monkeypatch, caplog):
    cart_service.add_item(user, product(), 1)
    monkeypatch.setattr(cart_service.remote, "save_line", db_down)

    view = cart_service.add_item(user, product("p2", "Milk", "30"), 2)

    assert view.source == "local"
    assert view.warnings == [FALLBACK_WARNING]
    assert [(l.product_id, l.quantity) for l in view.items] == [("p1", 1), ("p2", 2)]
    assert "failed remotely" in caplog.text


def test_remote_read_failure_uses_mirror(cart_service, user, monkeypatch):
    cart_service.add_item(user, product(), 3)
    monkeypatch.setattr(cart_service.remote, "list_lines", db_down)

    view = cart_service.get_cart(user)

    assert view.source == "local"
    assert view.warnings == [FALLBACK_WARNING]
    assert lines_of(view) == [("p1", 3, Decimal("50"))]


def test_remote_wins_over_stale_mirror(cart_service, user):
    cart_service.local.replace_all("u1", [])
    cart_service.remote.save_line(
        "u1", CartLine(product_id="p9", name="Stale", price=Decimal("1"), quantity=1)
    )

    view = cart_service.add_item(user, product(), 1)

    assert [l.product_id for l in view.items] == ["p9", "p1"]
    assert [l.product_id for l in cart_service.local.list_lines("u1")] == ["p9", "p1"]


def test_listeners_notified_on_every_mutation(cart_service, events, guest):
    seen = []
    unsubscribe = events.subscribe(lambda owner, cart: seen.append((owner, cart.item_count)))

    cart_service.add_item(guest, product(), 2)
    cart_service.set_quantity(guest, "p1", 5)
    cart_service.remove_item(guest, "p1")
    unsubscribe()
    cart_service.add_item(guest, product(), 1)

    assert seen == [("guest-1", 2), ("guest-1", 5), ("guest-1", 0)]


def test_broken_listener_does_not_break_mutation(cart_service, events, guest):
    def broken(owner, cart):
        raise RuntimeError("view gone")

    events.subscribe(broken)
    view = cart_service.add_item(guest, product(), 1)

    assert view.item_count == 1


def test_merge_guest_cart(cart_service, guest, user, redis_client):
    cart_service.add_item(guest, product(price="50"), 2)
    cart_service.add_item(guest, product("p2", "Milk", "30"), 1)
    cart_service.add_item(user, product(price="48"), 1)

    view = cart_service.merge_guest_cart(user, "guest-1")

    assert view.source == "remote"
    assert lines_of(view) == [("p1", 3, Decimal("48")), ("p2", 1, Decimal("30"))]
    assert redis_client.get(LocalCartRepo.key("guest-1")) is None


def test_failed_merge_keeps_guest_cart_and_remote_untouched(cart_service, guest, user, redis_client, monkeypatch):
    cart_service.add_item(guest, product(price="50"), 2)
    cart_service.add_item(guest, product("p2", "Milk", "30"), 1)
    cart_service.add_item(user, product(price="48"), 1)

    remote = cart_service.remote
    real_stage = remote._stage
    calls = []

    def fail_second(owner, line):
        calls.append(line.product_id)
        if len(calls) == 2:
            db_down()
        real_stage(owner, line)

    monkeypatch.setattr(remote, "_stage", fail_second)

    view = cart_service.merge_guest_cart(user, "guest-1")

    assert view.warnings == [FALLBACK_WARNING]
    assert [(l.product_id, l.quantity) for l in remote.list_lines("u1")] == [("p1", 1)]
    assert [l.product_id for l in LocalCartRepo(redis_client).list_lines("guest-1")] == ["p1", "p2"]

    # the guest cart can still be merged once the store is back
    monkeypatch.undo()
    view = cart_service.merge_guest_cart(user, "guest-1")

    assert view.warnings == []
    assert lines_of(view) == [("p1", 3, Decimal("48")), ("p2", 1, Decimal("30"))]
    assert redis_client.get(LocalCartRepo.key("guest-1")) is None


def test_merge_requires_sign_in(cart_service, guest):
    with pytest.raises(Unauthenticated):
        cart_service.merge_guest_cart(guest, "guest-1")


def test_corrupt_local_blob_reads_as_empty(cart_service, guest, redis_client):
    redis_client.set("muchshop_cart:guest-1", "{not json")
    assert cart_service.get_cart(guest).items == []


def test_local_read_error_does_not_overwrite_cart(cart_service, guest, redis_client, monkeypatch):
    cart_service.add_item(guest, product(), 1)
    cart_service.add_item(guest, product("p2", "Milk", "30"), 1)

    def redis_down(*args, **kwargs):
        raise RedisError("connection reset")

    monkeypatch.setattr(redis_client, "get", redis_down)

    with pytest.raises(RedisError):
        cart_service.add_item(guest, product("p3", "Rice", "119"), 1)
    with pytest.raises(RedisError):
        cart_service.remove_item(guest, "p1")

    monkeypatch.undo()
    assert [l.product_id for l in cart_service.get_lines(guest)] == ["p1", "p2"]
