from decimal import Decimal
from typing import Callable, List

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from muchshop.domain.errors import RemoteUnavailable, Unauthenticated
from muchshop.domain.schemas import CartLine, CartOut, Product, SessionContext
from muchshop.repos.cart_repo import CartRepository, RemoteCartRepo
from muchshop.repos.local_store import LocalCartRepo
from muchshop.services.cart_events import CartEvents
from muchshop.services.pricing import get_pricing
from muchshop.utils.logging import get_logger
from muchshop.utils.result import Err, Result, attempt

logger = get_logger(__name__)

Mutation = Callable[[CartRepository, str], None]

FALLBACK_WARNING = "We couldn't reach the store, your cart was saved on this device."


class CartService:
    """
    Cart use cases with two backends:
    signed in users -> remote cart (source of truth) + local mirror,
    guests -> local cart only.
    Remote failures never reach the caller, the change lands in the local cart
    and the returned view carries a warning.
    """

    def __init__(
        self,
        local_repo: LocalCartRepo,
        remote_repo: RemoteCartRepo | None,
        events: CartEvents,
    ):
        self.local = local_repo
        self.remote = remote_repo
        self.events = events

    def select_repo(self, session: SessionContext) -> CartRepository:
        if session.is_authenticated and self.remote is not None:
            return self.remote
        return self.local

    @staticmethod
    def _owner(session: SessionContext) -> str:
        owner = session.owner
        if not owner:
            raise PermissionError("Missing user or guest id")
        return owner

    def _try_remote(self, operation: str, fn, *args) -> Result:
        result = attempt(fn, *args, catch=(SQLAlchemyError,))
        if isinstance(result, Err):
            return Err(RemoteUnavailable(operation, result.error))
        return result

    def _mirror(self, owner: str, lines: List[CartLine]) -> None:
        try:
            self.local.replace_all(owner, lines)
        except RedisError as e:
            logger.warning(f"Could not refresh local cart mirror for {owner}: {e}")

    @staticmethod
    def _view(owner: str, source: str, lines: List[CartLine], warnings: List[str]) -> CartOut:
        return CartOut(
            owner=owner,
            source=source,
            items=lines,
            total=sum((l.line_total for l in lines), Decimal("0.00")),
            item_count=sum(l.quantity for l in lines),
            warnings=warnings,
        )

    def _mutate(self, session: SessionContext, operation: str, apply: Mutation) -> CartOut:
        owner = self._owner(session)
        repo = self.select_repo(session)
        warnings: List[str] = []

        if repo is self.remote:
            def remote_step():
                apply(self.remote, owner)
                return self.remote.list_lines(owner)

            result = self._try_remote(operation, remote_step)
            if result.ok:
                lines = result.value
                # remote wins, local is only a mirror
                self._mirror(owner, lines)
                view = self._view(owner, self.remote.source, lines, warnings)
                self.events.publish(owner, view)
                return view

            logger.warning(
                f"{operation} for user {owner} failed remotely ({result.error.cause}), "
                f"applying to local cart"
            )
            warnings.append(FALLBACK_WARNING)

        apply(self.local, owner)
        view = self._view(owner, self.local.source, self.local.list_lines(owner), warnings)
        self.events.publish(owner, view)
        return view

    # query
    def get_cart(self, session: SessionContext) -> CartOut:
        owner = self._owner(session)
        if self.select_repo(session) is self.remote:
            result = self._try_remote("get_cart", self.remote.list_lines, owner)
            if result.ok:
                return self._view(owner, self.remote.source, result.value, [])
            logger.warning(f"Reading cart of user {owner} failed ({result.error.cause}), using local mirror")
            return self._view(owner, self.local.source, self.local.list_lines(owner), [FALLBACK_WARNING])
        return self._view(owner, self.local.source, self.local.list_lines(owner), [])

    def get_lines(self, session: SessionContext) -> List[CartLine]:
        return self.get_cart(session).items

    def get_total(self, session: SessionContext) -> Decimal:
        return self.get_cart(session).total

    def get_item_count(self, session: SessionContext) -> int:
        return self.get_cart(session).item_count

    # commands
    def add_item(self, session: SessionContext, product: Product, quantity: int = 1) -> CartOut:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        price = get_pricing(product).current_price

        def apply(repo: CartRepository, owner: str):
            existing = repo.get_line(owner, product.id)
            if existing:
                logger.info(
                    f"Product {product.id} already in cart of {owner}, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                # price is re-snapshotted to the current effective price
                line = existing.model_copy(update={"quantity": existing.quantity + quantity, "price": price})
            else:
                logger.info(f"Adding product {product.id} to cart of {owner}")
                line = CartLine(
                    product_id=product.id,
                    name=product.name,
                    unit=product.unit,
                    image=product.image,
                    price=price,
                    quantity=quantity,
                )
            repo.save_line(owner, line)

        return self._mutate(session, "add_item", apply)

    def set_quantity(self, session: SessionContext, product_id: str, quantity: int) -> CartOut:
        if quantity <= 0:
            return self.remove_item(session, product_id)

        def apply(repo: CartRepository, owner: str):
            existing = repo.get_line(owner, product_id)
            if existing is None:
                return
            repo.save_line(owner, existing.model_copy(update={"quantity": quantity}))

        return self._mutate(session, "set_quantity", apply)

    def remove_item(self, session: SessionContext, product_id: str) -> CartOut:
        def apply(repo: CartRepository, owner: str):
            logger.info(f"Removing product {product_id} from cart of {owner}")
            repo.delete_line(owner, product_id)

        return self._mutate(session, "remove_item", apply)

    def clear(self, session: SessionContext) -> CartOut:
        return self._mutate(session, "clear", lambda repo, owner: repo.clear(owner))

    def merge_guest_cart(self, session: SessionContext, guest_id: str) -> CartOut:
        """
        Folds a guest's local cart into the signed in user's cart.
        Quantities add up, lines already in the user's cart keep their price.
        """
        if not session.is_authenticated:
            raise Unauthenticated("Sign in to keep your guest cart.")

        owner = self._owner(session)
        if guest_id == owner:
            return self.get_cart(session)

        guest_lines = self.local.list_lines(guest_id)
        if not guest_lines:
            return self.get_cart(session)

        def apply(repo: CartRepository, owner: str):
            merged = []
            for g in guest_lines:
                existing = repo.get_line(owner, g.product_id)
                if existing:
                    merged.append(existing.model_copy(update={"quantity": existing.quantity + g.quantity}))
                else:
                    merged.append(g)
            repo.save_lines(owner, merged)

        view = self._mutate(session, "merge_guest_cart", apply)
        if view.warnings:
            # merged into the local mirror only, keep the guest cart for the next sign in
            logger.warning(f"Guest cart {guest_id} kept, merge into cart of {owner} was not stored remotely")
            return view

        self.local.drop(guest_id)
        logger.info(f"Merged {len(guest_lines)} guest lines from {guest_id} into cart of {owner}")
        return view
