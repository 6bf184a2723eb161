# muchshop/repos/favorite_repo.py
from typing import List

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from muchshop.data.models.favorite import FavoriteModel


class FavoriteRepo:
    source = "remote"

    def __init__(self, db: Session):
        self.db = db

    def list_ids(self, owner: str) -> List[str]:
        return list(
            self.db.execute(
                select(FavoriteModel.product_id)
                .where(FavoriteModel.user_id == owner)
                .order_by(FavoriteModel.added_at, FavoriteModel.id)
            ).scalars().all()
        )

    def add(self, owner: str, product_id: str) -> None:
        try:
            exists = self.db.execute(
                select(FavoriteModel.id).where(
                    FavoriteModel.user_id == owner,
                    FavoriteModel.product_id == product_id,
                )
            ).first()
            if not exists:
                self.db.add(FavoriteModel(user_id=owner, product_id=product_id))
                self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def remove(self, owner: str, product_id: str) -> None:
        try:
            self.db.execute(
                delete(FavoriteModel).where(
                    FavoriteModel.user_id == owner,
                    FavoriteModel.product_id == product_id,
                )
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def clear(self, owner: str) -> None:
        try:
            self.db.execute(delete(FavoriteModel).where(FavoriteModel.user_id == owner))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
