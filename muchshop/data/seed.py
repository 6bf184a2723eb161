# muchshop/data/seed.py
from decimal import Decimal

from muchshop.data.database import Base, SessionLocal, engine
from muchshop.data.models import ProductModel, UserModel
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"id": "p1", "name": "Tomatoes", "category": "vegetables", "price": Decimal("50"), "stock": 40, "unit": "kg",
     "offers": [{"type": "BEST_SELLER", "is_active": True, "priority": 1}]},
    {"id": "p2", "name": "Toned Milk", "category": "dairy", "price": Decimal("30"), "stock": 25, "unit": "ltr"},
    {"id": "p3", "name": "Basmati Rice", "category": "grains", "price": Decimal("140"),
     "original_price": Decimal("140"), "discounted_price": Decimal("119"), "stock": 8, "unit": "kg",
     "offers": [{"type": "TODAYS_DEAL", "is_active": True, "priority": 2}]},
]


def seed():
    """Dev data: a few products and an admin profile, only when the catalog is empty."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(ProductModel).first():
            return
        for p in PRODUCTS:
            db.add(ProductModel(**p))
        db.add(UserModel(uid="admin", name="Shop Admin", role="admin"))
        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
