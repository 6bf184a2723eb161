from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from muchshop.data.database import get_db
from muchshop.domain.schemas import Product, ProductView
from muchshop.repos.product_repo import ProductRepo
from muchshop.services.pricing import get_pricing, offer_badges

router = APIRouter(prefix="/products", tags=["products"])


def load_product(db: Session, product_id: str) -> Product:
    try:
        row = ProductRepo(db).get_product(product_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Catalog unavailable, please try again")
    if not row or not row.visible:
        raise HTTPException(status_code=404, detail="Product not found")
    return Product.model_validate(row)


@router.get("/{product_id}", response_model=ProductView)
def get_product(product_id: str, db: Session = Depends(get_db)):
    """Read-only product card: effective price and offer badges."""
    product = load_product(db, product_id)
    return ProductView(product=product, pricing=get_pricing(product), badges=offer_badges(product))
