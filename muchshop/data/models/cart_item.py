from sqlalchemy import Column, Integer, String, Numeric, DateTime, UniqueConstraint
from datetime import datetime, timezone

from muchshop.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    product_id = Column(String, nullable=False)

    name = Column(String, nullable=False)
    unit = Column(String, nullable=False, default="")
    image = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)  # snapshot at add time
    quantity = Column(Integer, nullable=False)

    added_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    __table_args__ = (UniqueConstraint("user_id", "product_id", name="u_user_product"),)
