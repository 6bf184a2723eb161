# muchshop/repos/cart_repo.py
from typing import List

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from muchshop.data.models.cart_item import CartItemModel
from muchshop.domain.schemas import CartLine


class CartRepository:
    """
    Storage of one owner's cart lines, keyed by product id.
    Implemented by RemoteCartRepo (database, per user) and
    LocalCartRepo (redis blob, guest or offline mirror).
    """

    source = "unknown"

    def list_lines(self, owner: str) -> List[CartLine]:
        raise NotImplementedError

    def get_line(self, owner: str, product_id: str) -> CartLine | None:
        for line in self.list_lines(owner):
            if line.product_id == product_id:
                return line
        return None

    def save_line(self, owner: str, line: CartLine) -> None:
        raise NotImplementedError

    def save_lines(self, owner: str, lines: List[CartLine]) -> None:
        """Saves several lines at once, all or nothing."""
        raise NotImplementedError

    def delete_line(self, owner: str, product_id: str) -> None:
        raise NotImplementedError

    def clear(self, owner: str) -> None:
        raise NotImplementedError

    def replace_all(self, owner: str, lines: List[CartLine]) -> None:
        raise NotImplementedError


class RemoteCartRepo(CartRepository):
    source = "remote"

    def __init__(self, db: Session):
        self.db = db

    def _row(self, owner: str, product_id: str) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.user_id == owner,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def list_lines(self, owner: str) -> List[CartLine]:
        rows = self.db.execute(
            select(CartItemModel)
            .where(CartItemModel.user_id == owner)
            .order_by(CartItemModel.added_at, CartItemModel.id)
        ).scalars().all()
        return [CartLine.model_validate(r) for r in rows]

    def get_line(self, owner: str, product_id: str) -> CartLine | None:
        row = self._row(owner, product_id)
        return CartLine.model_validate(row) if row else None

    def _stage(self, owner: str, line: CartLine) -> None:
        row = self._row(owner, line.product_id)
        if row:
            row.name = line.name
            row.unit = line.unit
            row.image = line.image
            row.price = line.price
            row.quantity = line.quantity
        else:
            self.db.add(
                CartItemModel(
                    user_id=owner,
                    product_id=line.product_id,
                    name=line.name,
                    unit=line.unit,
                    image=line.image,
                    price=line.price,
                    quantity=line.quantity,
                )
            )

    def save_line(self, owner: str, line: CartLine) -> None:
        self.save_lines(owner, [line])

    def save_lines(self, owner: str, lines: List[CartLine]) -> None:
        # single commit, a failure leaves none of the lines behind
        try:
            for line in lines:
                self._stage(owner, line)
                self.db.flush()
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def delete_line(self, owner: str, product_id: str) -> None:
        try:
            self.db.execute(
                delete(CartItemModel).where(
                    CartItemModel.user_id == owner,
                    CartItemModel.product_id == product_id,
                )
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def clear(self, owner: str) -> None:
        try:
            self.db.execute(delete(CartItemModel).where(CartItemModel.user_id == owner))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def replace_all(self, owner: str, lines: List[CartLine]) -> None:
        try:
            self.db.execute(delete(CartItemModel).where(CartItemModel.user_id == owner))
            for line in lines:
                self.db.add(CartItemModel(user_id=owner, **line.model_dump()))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
