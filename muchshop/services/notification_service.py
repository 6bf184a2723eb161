# muchshop/services/notification_service.py
from kombu.exceptions import OperationalError
from requests import RequestException

from muchshop.celery_worker import celery_app
from muchshop.domain.schemas import OrderOut
from muchshop.services.order_sheet_client import OrderSheetClient
from muchshop.services.order_text import checkout_whatsapp_url, sheet_row
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Notifies the shop about new orders.
    Runs through Celery so order placement never waits on the webhook.
    """

    @staticmethod
    def send_order_notification(order: OrderOut):
        try:
            send_order_notification_task.delay(order.model_dump(mode="json"))
        except OperationalError as e:
            # the order is already committed, a missing notification is not fatal
            logger.error(f"Could not enqueue notification for order {order.id}: {e}")


@celery_app.task(name="muchshop.services.notification_service.send_order_notification_task")
def send_order_notification_task(order_payload: dict):
    order = OrderOut.model_validate(order_payload)
    row = sheet_row(order)
    whatsapp_url = checkout_whatsapp_url(order)

    logger.info(f"[NOTIFICATION] Order {order.id} from {order.customer_name}: {whatsapp_url}")

    try:
        submitted = OrderSheetClient().submit_order(row)
    except RequestException as e:
        logger.warning(f"Orders sheet notification failed for order {order.id} (non-critical): {e}")
        submitted = False

    return {"order_id": order.id, "submitted": submitted, "whatsapp_url": whatsapp_url}
