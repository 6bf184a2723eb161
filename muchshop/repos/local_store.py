# muchshop/repos/local_store.py
import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

import redis
from redis.exceptions import RedisError

from muchshop.domain.schemas import CartLine
from muchshop.repos.cart_repo import CartRepository
from muchshop.utils.retry import redis_retry
from muchshop.utils.settings import REDIS_URL
from muchshop.utils.logging import get_logger

logger = get_logger(__name__)

CART_KEY_PREFIX = "muchshop_cart"
WISHLIST_KEY_PREFIX = "muchshop_wishlist"


def get_redis(url: str | None = None) -> redis.Redis:
    return redis.Redis.from_url(url or REDIS_URL, decode_responses=True)


class LocalCartRepo(CartRepository):
    """
    Guest cart and offline mirror, one JSON blob per owner:
    [{"id", "name", "price", "unit", "image", "quantity"}, ...]
    """

    source = "local"

    def __init__(self, client: redis.Redis):
        self.redis = client

    @staticmethod
    def key(owner: str) -> str:
        return f"{CART_KEY_PREFIX}:{owner}"

    @redis_retry()
    def _read(self, owner: str) -> str | None:
        return self.redis.get(self.key(owner))

    @redis_retry()
    def _write(self, owner: str, lines: List[CartLine]) -> None:
        blob = [
            {
                "id": l.product_id,
                "name": l.name,
                "price": str(l.price),
                "unit": l.unit,
                "image": l.image,
                "quantity": l.quantity,
            }
            for l in lines
        ]
        self.redis.set(self.key(owner), json.dumps(blob))

    def _load(self, owner: str) -> List[CartLine]:
        """Lines for a read-modify-write, redis errors propagate."""
        raw = self._read(owner)
        if not raw:
            return []
        try:
            return [
                CartLine(
                    product_id=d["id"],
                    name=d["name"],
                    price=Decimal(str(d["price"])),
                    unit=d.get("unit") or "",
                    image=d.get("image"),
                    quantity=d["quantity"],
                )
                for d in json.loads(raw)
            ]
        except (ValueError, KeyError, TypeError) as e:
            # unreadable blob behaves like an empty cart
            logger.error(f"Error reading local cart {owner}: {e}")
            return []

    def list_lines(self, owner: str) -> List[CartLine]:
        try:
            return self._load(owner)
        except RedisError as e:
            logger.error(f"Local cart {owner} unavailable: {e}")
            return []

    def save_line(self, owner: str, line: CartLine) -> None:
        lines = self._load(owner)
        for i, existing in enumerate(lines):
            if existing.product_id == line.product_id:
                lines[i] = line
                break
        else:
            lines.append(line)
        self._write(owner, lines)

    def save_lines(self, owner: str, lines: List[CartLine]) -> None:
        by_id = {l.product_id: l for l in lines}
        merged = [by_id.pop(l.product_id, l) for l in self._load(owner)]
        self._write(owner, merged + list(by_id.values()))

    def delete_line(self, owner: str, product_id: str) -> None:
        lines = [l for l in self._load(owner) if l.product_id != product_id]
        self._write(owner, lines)

    def clear(self, owner: str) -> None:
        self._write(owner, [])

    def replace_all(self, owner: str, lines: List[CartLine]) -> None:
        self._write(owner, lines)

    @redis_retry()
    def drop(self, owner: str) -> None:
        self.redis.delete(self.key(owner))


class LocalWishlistRepo:
    """Wishlist blob: {"items": [product ids], "lastUpdated": iso}."""

    source = "local"

    def __init__(self, client: redis.Redis):
        self.redis = client

    @staticmethod
    def key(owner: str) -> str:
        return f"{WISHLIST_KEY_PREFIX}:{owner}"

    @redis_retry()
    def _read(self, owner: str) -> str | None:
        return self.redis.get(self.key(owner))

    def _load(self, owner: str) -> List[str]:
        raw = self._read(owner)
        if not raw:
            return []
        try:
            return list(json.loads(raw).get("items", []))
        except (ValueError, AttributeError, TypeError) as e:
            logger.error(f"Error loading wishlist {owner}: {e}")
            return []

    def list_ids(self, owner: str) -> List[str]:
        try:
            return self._load(owner)
        except RedisError as e:
            logger.error(f"Local wishlist {owner} unavailable: {e}")
            return []

    @redis_retry()
    def replace_all(self, owner: str, product_ids: List[str]) -> None:
        self.redis.set(
            self.key(owner),
            json.dumps({
                "items": list(product_ids),
                "lastUpdated": datetime.now(timezone.utc).isoformat(),
            }),
        )

    def add(self, owner: str, product_id: str) -> None:
        ids = self._load(owner)
        if product_id not in ids:
            ids.append(product_id)
        self.replace_all(owner, ids)

    def remove(self, owner: str, product_id: str) -> None:
        self.replace_all(owner, [i for i in self._load(owner) if i != product_id])

    def clear(self, owner: str) -> None:
        self.replace_all(owner, [])
