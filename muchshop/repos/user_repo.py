# muchshop/repos/user_repo.py
from sqlalchemy.orm import Session

from muchshop.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, uid: str) -> UserModel | None:
        return self.db.get(UserModel, uid)

    def save(self, user: UserModel) -> UserModel:
        """Inserts or updates the profile row."""
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
