# muchshop/services/order_feed.py
import threading
from typing import Any, Callable, List

from sqlalchemy.orm import Session

from muchshop.data.database import SessionLocal
from muchshop.domain.schemas import OrderOut
from muchshop.repos.order_repo import OrderRepo
from muchshop.utils.settings import ORDERS_LIST_LIMIT
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)


class _Subscription:
    def __init__(self, query: Callable[[Session], Any], callback: Callable[[Any], None]):
        self.query = query
        self.callback = callback
        self.active = True


class OrderFeed:
    """
    Live order views for admin dashboards and order history.

    Every listener gets the full current snapshot when it subscribes and again
    after every published change; views replace their state wholesale.
    The returned unsubscribe callable must be called when the view goes away.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self._subs: List[_Subscription] = []
        self._lock = threading.Lock()

    def _subscribe(self, query, callback) -> Callable[[], None]:
        sub = _Subscription(query, callback)
        with self._lock:
            self._subs.append(sub)
        self._deliver(sub)

        def unsubscribe():
            sub.active = False
            with self._lock:
                if sub in self._subs:
                    self._subs.remove(sub)

        return unsubscribe

    def _deliver(self, sub: _Subscription) -> None:
        db = self.session_factory()
        try:
            snapshot = sub.query(db)
        except Exception:
            logger.exception("Order feed query failed")
            return
        finally:
            db.close()

        if not sub.active:
            return
        try:
            sub.callback(snapshot)
        except Exception:
            # a broken view must not fail the write that published
            logger.exception(f"Order feed listener {sub.callback!r} failed")

    def publish(self) -> None:
        with self._lock:
            subs = list(self._subs)
        for sub in subs:
            self._deliver(sub)

    def listen_order(self, order_id: str, callback: Callable[[OrderOut | None], None]):
        def query(db):
            order = OrderRepo(db).get_order(order_id)
            return OrderOut.model_validate(order) if order else None

        return self._subscribe(query, callback)

    def listen_orders(self, callback: Callable[[List[OrderOut]], None], status: str | None = None,
                      limit: int = ORDERS_LIST_LIMIT):
        def query(db):
            return [OrderOut.model_validate(o) for o in OrderRepo(db).list_orders(status=status, limit=limit)]

        return self._subscribe(query, callback)

    def listen_user_orders(self, user_id: str, callback: Callable[[List[OrderOut]], None]):
        def query(db):
            return [OrderOut.model_validate(o) for o in OrderRepo(db).list_user_orders(user_id)]

        return self._subscribe(query, callback)

    def __len__(self):
        return len(self._subs)


order_feed = OrderFeed()
