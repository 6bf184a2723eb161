# muchshop/repos/order_repo.py
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from muchshop.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: str) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def list_orders(self, status: str | None = None, limit: int = 100) -> List[OrderModel]:
        q = select(OrderModel)
        if status:
            q = q.where(OrderModel.status == status)
        q = q.order_by(OrderModel.created_at.desc()).limit(limit)
        return list(self.db.execute(q).scalars().all())

    def list_user_orders(self, user_id: str) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc())
            ).scalars().all()
        )

    def count_by_status(self) -> Dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id)).group_by(OrderModel.status)
        ).all()
        return {status: count for status, count in rows}

    def update_order_status(self, order_id: str, status: str, allowed_from: Iterable[str]) -> int:
        """
        Conditional status write, only applied when the stored status is one of
        allowed_from. Returns affected rows (0 = rejected or missing).
        """
        allowed_from = list(allowed_from)
        if not allowed_from:
            return 0
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status.in_(allowed_from))
            .values(status=status, updated_at=datetime.now(timezone.utc))
        )
        self.db.commit()
        return result.rowcount

    def update_order_notes(self, order_id: str, notes: str) -> OrderModel | None:
        order = self.get_order(order_id)
        if order:
            order.notes = notes
            order.updated_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(order)
        return order

    def refresh(self, order: OrderModel) -> OrderModel:
        self.db.refresh(order)
        return order
