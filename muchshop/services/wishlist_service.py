# muchshop/services/wishlist_service.py
from typing import Callable, List

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from muchshop.domain.errors import RemoteUnavailable
from muchshop.domain.schemas import SessionContext, ToggleOut, WishlistOut
from muchshop.repos.favorite_repo import FavoriteRepo
from muchshop.repos.local_store import LocalWishlistRepo
from muchshop.utils.logging import get_logger
from muchshop.utils.result import Err, attempt

logger = get_logger(__name__)

FALLBACK_WARNING = "We couldn't reach the store, your wishlist was saved on this device."


class WishlistService:
    """Favorites of signed in users live remotely, guests keep a local list."""

    def __init__(self, local_repo: LocalWishlistRepo, remote_repo: FavoriteRepo | None):
        self.local = local_repo
        self.remote = remote_repo

    def _uses_remote(self, session: SessionContext) -> bool:
        return session.is_authenticated and self.remote is not None

    @staticmethod
    def _owner(session: SessionContext) -> str:
        owner = session.owner
        if not owner:
            raise PermissionError("Missing user or guest id")
        return owner

    @staticmethod
    def _view(ids: List[str], source: str, warnings: List[str]) -> WishlistOut:
        return WishlistOut(items=ids, count=len(ids), source=source, warnings=warnings)

    def _mutate(self, session: SessionContext, operation: str, apply: Callable) -> WishlistOut:
        owner = self._owner(session)
        warnings = []

        if self._uses_remote(session):
            def remote_step():
                apply(self.remote, owner)
                return self.remote.list_ids(owner)

            result = attempt(remote_step, catch=(SQLAlchemyError,))
            if not isinstance(result, Err):
                try:
                    self.local.replace_all(owner, result.value)
                except RedisError as e:
                    logger.warning(f"Could not refresh local wishlist mirror for {owner}: {e}")
                return self._view(result.value, self.remote.source, warnings)

            error = RemoteUnavailable(operation, result.error)
            logger.warning(f"{operation} for user {owner} failed remotely ({error.cause}), using local wishlist")
            warnings.append(FALLBACK_WARNING)

        apply(self.local, owner)
        return self._view(self.local.list_ids(owner), self.local.source, warnings)

    def list(self, session: SessionContext) -> WishlistOut:
        owner = self._owner(session)
        if self._uses_remote(session):
            result = attempt(self.remote.list_ids, owner, catch=(SQLAlchemyError,))
            if not isinstance(result, Err):
                return self._view(result.value, self.remote.source, [])
            logger.warning(f"Reading favorites of {owner} failed ({result.error}), using local wishlist")
            return self._view(self.local.list_ids(owner), self.local.source, [FALLBACK_WARNING])
        return self._view(self.local.list_ids(owner), self.local.source, [])

    def contains(self, session: SessionContext, product_id: str) -> bool:
        return product_id in self.list(session).items

    def count(self, session: SessionContext) -> int:
        return self.list(session).count

    def add(self, session: SessionContext, product_id: str) -> WishlistOut:
        return self._mutate(session, "add_favorite", lambda repo, owner: repo.add(owner, product_id))

    def remove(self, session: SessionContext, product_id: str) -> WishlistOut:
        return self._mutate(session, "remove_favorite", lambda repo, owner: repo.remove(owner, product_id))

    def clear(self, session: SessionContext) -> WishlistOut:
        return self._mutate(session, "clear_favorites", lambda repo, owner: repo.clear(owner))

    def toggle(self, session: SessionContext, product_id: str) -> ToggleOut:
        if self.contains(session, product_id):
            view = self.remove(session, product_id)
        else:
            view = self.add(session, product_id)
        return ToggleOut(**view.model_dump(), in_wishlist=product_id in view.items)
