# muchshop/services/order_sheet_client.py
import requests

from muchshop.utils.retry import http_retry
from muchshop.utils.settings import ORDERS_WEBHOOK_URL
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)


class OrderSheetClient:
    """Posts placed orders to the shop's orders sheet (apps script webhook)."""

    def __init__(self, url: str | None = None, timeout: int = 5):
        self.url = ORDERS_WEBHOOK_URL if url is None else url
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @http_retry()
    def submit_order(self, row: dict) -> bool:
        if not self.enabled:
            logger.info(f"Orders webhook not configured, skipping order {row.get('order_id')}")
            return False

        logger.info(f"OrderSheetClient POST {self.url} order {row.get('order_id')}")
        resp = requests.post(self.url, json=row, timeout=self.timeout)
        resp.raise_for_status()
        return True
