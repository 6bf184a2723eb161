# muchshop/services/order_service.py
from decimal import Decimal
from typing import Dict, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from muchshop.data.models.order import OrderModel
from muchshop.domain.errors import (
    InsufficientStock,
    InvalidTransition,
    OrderNotFound,
    RemoteUnavailable,
    StockConflict,
    Unauthenticated,
)
from muchshop.domain.schemas import (
    CartLine,
    CustomerDetails,
    OrderLine,
    OrderOut,
    OrderStatus,
    OrderType,
    SessionContext,
    Totals,
)
from muchshop.repos.order_repo import OrderRepo
from muchshop.services.inventory_service import InventoryService
from muchshop.services.notification_service import NotificationService
from muchshop.services.order_feed import OrderFeed
from muchshop.services.order_status import allowed_predecessors, is_valid_transition, next_statuses
from muchshop.utils.settings import DELIVERY_FEE, ORDERS_LIST_LIMIT
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)


def can_place_order(session: SessionContext | None) -> bool:
    return session is not None and session.is_authenticated


def snapshot_lines(cart: List[CartLine]) -> Tuple[List[OrderLine], Decimal]:
    """Order lines use the price already snapshotted in the cart."""
    subtotal = Decimal("0.00")
    lines = []
    for item in cart:
        line_total = item.price * item.quantity
        subtotal += line_total
        lines.append(
            OrderLine(
                product_id=item.product_id,
                name=item.name,
                image=item.image,
                qty=item.quantity,
                price=item.price,
                line_total=line_total,
            )
        )
    return lines, subtotal


def calculate_totals(cart: List[CartLine], order_type: OrderType, delivery_fee: Decimal = DELIVERY_FEE) -> Totals:
    _, subtotal = snapshot_lines(cart)
    fee = delivery_fee if OrderType(order_type) == OrderType.DELIVERY else Decimal("0")
    return Totals(subtotal=subtotal, delivery_fee=fee, total=subtotal + fee)


class OrderService:
    """
    Order placement and the admin side of the order lifecycle.
    Separate from CartService, the caller clears the cart after a successful order.
    """

    def __init__(
        self,
        db: Session,
        feed: OrderFeed | None = None,
        notification_service: NotificationService | None = None,
        delivery_fee: Decimal = DELIVERY_FEE,
    ):
        if delivery_fee <= 0:
            raise ValueError("Delivery fee must be greater than 0")
        self.db = db
        self.repo = OrderRepo(db)
        self.inventory = InventoryService(db)
        self.feed = feed
        self.notification_service = notification_service or NotificationService()
        self.delivery_fee = delivery_fee

    def _publish(self):
        if self.feed is not None:
            self.feed.publish()

    # =====================================================
    # COMMANDS
    # =====================================================
    def place_order(
        self,
        order_type: OrderType,
        cart: List[CartLine],
        session: SessionContext,
        details: CustomerDetails,
    ) -> str:
        """
        1. Requires a signed in, non anonymous user
        2. Snapshots cart lines and totals
        3. Creates the order (commit point)
        4. Decrements stock, best effort: a failure is logged, the order stays
        5. Notifies the shop (async)
        """
        if not can_place_order(session):
            raise Unauthenticated()

        if not cart:
            raise ValueError("Your cart is empty")

        order_type = OrderType(order_type)
        lines, subtotal = snapshot_lines(cart)
        delivery_fee = self.delivery_fee if order_type == OrderType.DELIVERY else Decimal("0")
        total = subtotal + delivery_fee

        order = OrderModel(
            user_id=session.uid,
            user_email=session.email or "anonymous",
            customer_name=details.customer_name,
            customer_phone=details.customer_phone,
            order_type=order_type.value,
            items=[l.model_dump(mode="json") for l in lines],
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=total,
            status=OrderStatus.NEW.value,
            notes=details.notes or "",
        )

        if order_type == OrderType.PICKUP:
            order.pickup_datetime = details.pickup_datetime
        else:
            order.delivery_address = details.delivery_address

        try:
            created = self.repo.create_order(order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to place order for user {session.uid}: {e}")
            raise RemoteUnavailable("place_order", e, "Failed to place order. Please try again.")

        placed = OrderOut.model_validate(created)
        logger.info(f"Order {placed.id} placed by user {session.uid}, total {total}")

        try:
            remaining = self.inventory.decrement_stock(lines)
            logger.info(f"Stock decremented for order {placed.id}: {remaining}")
        except InsufficientStock as e:
            # order is not rolled back, it needs a manual stock check
            logger.warning(
                f"INSUFFICIENT STOCK for order {placed.id}: product {e.product_id} "
                f"has {e.available}, stock left unchanged"
            )
        except (SQLAlchemyError, StockConflict) as e:
            logger.warning(f"Stock decrement failed for order {placed.id}: {e}")

        self.notification_service.send_order_notification(placed)
        self._publish()

        return placed.id

    def apply_status_change(self, order_id: str, new_status: OrderStatus) -> OrderOut:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)

        new_status = OrderStatus(new_status)
        if not is_valid_transition(order.status, new_status):
            raise InvalidTransition(order.status, new_status.value)

        # write only applies if nobody moved the order meanwhile
        rowcount = self.repo.update_order_status(
            order_id,
            new_status.value,
            allowed_from=[s.value for s in allowed_predecessors(new_status)],
        )
        order = self.repo.refresh(order)

        if rowcount == 0:
            raise InvalidTransition(order.status, new_status.value)

        logger.info(f"Order {order_id} status changed to {new_status.value}")
        self._publish()

        return OrderOut.model_validate(order)

    def update_order_notes(self, order_id: str, notes: str) -> OrderOut:
        order = self.repo.update_order_notes(order_id, notes)
        if not order:
            raise OrderNotFound(order_id)

        logger.info(f"Notes updated for order {order_id}")
        self._publish()
        return OrderOut.model_validate(order)

    # =====================================================
    # QUERIES
    # =====================================================
    def get_order(self, order_id: str, session: SessionContext | None = None, is_admin: bool = False) -> OrderOut:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)

        if not is_admin and (session is None or order.user_id != session.uid):
            raise PermissionError("No access to this order")

        return OrderOut.model_validate(order)

    def next_statuses(self, order_id: str) -> List[OrderStatus]:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)
        return next_statuses(order.status)

    def list_user_orders(self, session: SessionContext) -> List[OrderOut]:
        if not session.is_authenticated:
            raise Unauthenticated("Sign in to see your orders.")
        return [OrderOut.model_validate(o) for o in self.repo.list_user_orders(session.uid)]

    def list_orders(self, status: OrderStatus | None = None, limit: int = ORDERS_LIST_LIMIT) -> List[OrderOut]:
        status_value = OrderStatus(status).value if status else None
        return [OrderOut.model_validate(o) for o in self.repo.list_orders(status=status_value, limit=limit)]

    def status_counts(self) -> Dict[str, int]:
        counts = self.repo.count_by_status()
        result = {"ALL": sum(counts.values())}
        for status in OrderStatus:
            result[status.value] = counts.get(status.value, 0)
        return result
