from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime, timezone

from muchshop.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    uid = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="")
    email = Column(String, nullable=True)
    phone = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, default="customer")  # customer, admin
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True)
