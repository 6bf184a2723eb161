from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, JSON
from sqlalchemy.sql import func

from muchshop.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True, index=True)

    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)
    discounted_price = Column(Numeric(10, 2), nullable=True)

    stock = Column(Integer, nullable=False, default=0)
    unit = Column(String, nullable=False, default="")
    image = Column(String, nullable=True)
    visible = Column(Boolean, nullable=False, default=True)

    # list of offer dicts: type, is_active, start_time, end_time, priority
    offers = Column(JSON, nullable=False, default=list)
    is_best_seller = Column(Boolean, nullable=False, default=False)
    is_new_arrival = Column(Boolean, nullable=False, default=False)
    sales_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
