# muchshop/services/inventory_service.py
from typing import Dict, List

from sqlalchemy.orm import Session

from muchshop.domain.errors import InsufficientStock, StockConflict
from muchshop.domain.schemas import OrderLine
from muchshop.repos.product_repo import ProductRepo
from muchshop.utils.retry import stock_retry
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    @stock_retry()
    def decrement_stock(self, lines: List[OrderLine]) -> Dict[str, int]:
        """
        Decrements stock for every order line in one transaction.

        Products missing from the catalog are skipped (stock not tracked).
        Any line short on stock aborts the whole transaction with InsufficientStock.
        Stock is written with a conditional update on the value read; a concurrent
        change raises StockConflict and the whole transaction is retried.
        """
        try:
            remaining = {}
            for line in lines:
                stock = self.repo.get_stock(line.product_id)
                if stock is None:
                    logger.info(f"Product {line.product_id} not in inventory, skipping stock decrement")
                    continue

                if stock < line.qty:
                    raise InsufficientStock(line.product_id, line.name, stock)

                rowcount = self.repo.compare_and_set_stock(line.product_id, stock, stock - line.qty)
                if rowcount == 0:
                    raise StockConflict(line.product_id)

                remaining[line.product_id] = stock - line.qty

            self.repo.commit()
            return remaining

        except Exception:
            self.repo.rollback()
            raise
