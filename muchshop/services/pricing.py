# muchshop/services/pricing.py
"""
Pricing and promotional offers for catalog products.
Pure functions, no storage access.
"""
from datetime import datetime, timezone, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from muchshop.domain.schemas import Offer, OfferBadge, OfferType, Pricing, Product

DEFAULT_PRIORITY = 99
BEST_SELLER_SALES_THRESHOLD = 100
NEW_PRODUCT_DAYS = 7
LIMITED_STOCK_MAX = 10

OFFER_TYPES = {
    OfferType.BEST_SELLER: {"label": "Best Seller", "icon": "🔥", "color": "#FF6B35", "bg_color": "#FFE5DC", "priority": 1},
    OfferType.TODAYS_DEAL: {"label": "Today's Deal", "icon": "⚡", "color": "#7C3AED", "bg_color": "#EDE9FE", "priority": 2},
    OfferType.NEW_ARRIVAL: {"label": "New Arrival", "icon": "🆕", "color": "#059669", "bg_color": "#D1FAE5", "priority": 3},
    OfferType.LIMITED_STOCK: {"label": "Limited Stock", "icon": "⏳", "color": "#DC2626", "bg_color": "#FEE2E2", "priority": 4},
    OfferType.FLASH_SALE: {"label": "Flash Sale", "icon": "💥", "color": "#F59E0B", "bg_color": "#FEF3C7", "priority": 1},
}


def _aware(dt: datetime) -> datetime:
    # naive timestamps are stored as UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _now(now: datetime | None) -> datetime:
    return _aware(now) if now else datetime.now(timezone.utc)


def calculate_discount_percent(original_price: Decimal, discounted_price: Decimal | None) -> int:
    if not discounted_price or not original_price or discounted_price >= original_price:
        return 0
    percent = ((original_price - discounted_price) / original_price * 100).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return max(0, min(100, int(percent)))


def get_pricing(product: Product) -> Pricing:
    """Effective price of a product, discounted price wins only when lower."""
    original_price = product.original_price or product.price
    discounted_price = product.discounted_price
    has_discount = discounted_price is not None and discounted_price < original_price

    return Pricing(
        original_price=original_price,
        current_price=discounted_price if has_discount else original_price,
        discounted_price=discounted_price if has_discount else None,
        discount_percent=calculate_discount_percent(original_price, discounted_price) if has_discount else 0,
        has_discount=has_discount,
    )


def is_offer_active(offer: Offer | None, now: datetime | None = None) -> bool:
    if offer is None or offer.is_active is False:
        return False

    # time boxed offers (todays deal, flash sale)
    if offer.start_time and offer.end_time:
        moment = _now(now)
        return _aware(offer.start_time) <= moment <= _aware(offer.end_time)

    return True


def _priority(offer: Offer) -> int:
    return DEFAULT_PRIORITY if offer.priority is None else offer.priority


def get_active_offers(product: Product, max_count: int = 2, now: datetime | None = None) -> List[Offer]:
    """Active offers sorted by priority (stable), at most max_count of them."""
    if max_count <= 0 or not product.offers:
        return []
    active = [o for o in product.offers if is_offer_active(o, now)]
    return sorted(active, key=_priority)[:max_count]


def is_new_product(created_at: datetime | None, now: datetime | None = None) -> bool:
    if not created_at:
        return False
    return _now(now) - _aware(created_at) <= timedelta(days=NEW_PRODUCT_DAYS)


def auto_detect_offers(product: Product, now: datetime | None = None) -> List[Offer]:
    offers = []

    if product.is_best_seller or product.sales_count > BEST_SELLER_SALES_THRESHOLD:
        offers.append(Offer(type=OfferType.BEST_SELLER, priority=1))

    if product.is_new_arrival or is_new_product(product.created_at, now):
        offers.append(Offer(type=OfferType.NEW_ARRIVAL, priority=3))

    if 0 < product.stock <= LIMITED_STOCK_MAX:
        offers.append(Offer(type=OfferType.LIMITED_STOCK, priority=4))

    return offers


def offer_badges(product: Product, max_count: int = 2, now: datetime | None = None) -> List[OfferBadge]:
    """
    Badges shown on a product card.
    Stored offers win, products without any get the auto detected ones.
    """
    if product.offers:
        offers = get_active_offers(product, max_count, now)
    else:
        offers = sorted(auto_detect_offers(product, now), key=_priority)[:max(max_count, 0)]

    badges = []
    for offer in offers:
        meta = OFFER_TYPES[offer.type]
        badges.append(
            OfferBadge(
                type=offer.type,
                label=meta["label"],
                icon=meta["icon"],
                color=meta["color"],
                bg_color=meta["bg_color"],
                priority=meta["priority"] if offer.priority is None else offer.priority,
            )
        )
    return badges
