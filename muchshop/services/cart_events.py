# muchshop/services/cart_events.py
from typing import Callable, List

from muchshop.domain.schemas import CartOut
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)

CartListener = Callable[[str, CartOut], None]


class CartEvents:
    """
    Publish/subscribe for cart changes (badge counts, open cart views).
    Listeners are called synchronously, in subscription order.
    """

    def __init__(self):
        self._listeners: List[CartListener] = []

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, owner: str, cart: CartOut) -> None:
        for listener in list(self._listeners):
            try:
                listener(owner, cart)
            except Exception:
                # one broken view must not undo an applied mutation
                logger.exception(f"Cart listener {listener!r} failed for {owner}")

    def __len__(self):
        return len(self._listeners)


cart_events = CartEvents()
