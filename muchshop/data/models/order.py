from sqlalchemy import Column, String, DateTime, Numeric, Text, JSON
from datetime import datetime, timezone
import uuid

from muchshop.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String, nullable=False, index=True)
    user_email = Column(String, nullable=True)

    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)

    order_type = Column(String, nullable=False)  # PICKUP, DELIVERY
    pickup_datetime = Column(DateTime(timezone=True), nullable=True)
    delivery_address = Column(Text, nullable=True)

    # snapshotted order lines, never recomputed from products
    items = Column(JSON, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    status = Column(String, nullable=False, default="NEW", index=True)  # NEW, PROCESSING, COMPLETED, CANCELLED
    notes = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True)
