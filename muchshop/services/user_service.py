# muchshop/services/user_service.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from muchshop.data.models.user import UserModel
from muchshop.domain.errors import Unauthenticated
from muchshop.domain.schemas import ProfileIn, SessionContext, UserRead
from muchshop.repos.user_repo import UserRepo
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)

ADMIN_ROLE = "admin"
CUSTOMER_ROLE = "customer"


class UserService:
    """
    Shop profiles of signed in users.
    The role is never set here, admins are promoted directly in the database.
    """

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def save_profile(self, session: SessionContext, payload: ProfileIn) -> UserRead:
        # called after every sign in, creates the profile on first login
        if not session.is_authenticated:
            raise Unauthenticated("Sign in to save your profile.")

        user = self.repo.get_user(session.uid)
        if not user:
            user = UserModel(uid=session.uid, role=CUSTOMER_ROLE)
            logger.info(f"Creating profile for user {session.uid}")
        else:
            user.updated_at = datetime.now(timezone.utc)

        if payload.name:
            user.name = payload.name
        if payload.phone:
            user.phone = payload.phone
        if session.email:
            user.email = session.email

        return UserRead.model_validate(self.repo.save(user))

    def get_profile(self, session: SessionContext) -> UserRead:
        if not session.is_authenticated:
            raise Unauthenticated("Sign in to see your profile.")
        user = self.repo.get_user(session.uid)
        if not user:
            raise LookupError("Profile not found")
        return UserRead.model_validate(user)

    def is_admin(self, uid: str | None) -> bool:
        if not uid:
            return False
        user = self.repo.get_user(uid)
        return bool(user and user.is_active and user.role == ADMIN_ROLE)
