# muchshop/repos/product_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from muchshop.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: str) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_stock(self, product_id: str) -> int | None:
        """Current stock, None when the product is not tracked here."""
        row = self.db.execute(
            select(ProductModel.stock).where(ProductModel.id == product_id)
        ).first()
        if row is None:
            return None
        return row[0] or 0

    def compare_and_set_stock(self, product_id: str, expected: int, new_stock: int) -> int:
        # update products set stock = new where id = ? and stock = expected
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock == expected)
            .values(stock=new_stock)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
