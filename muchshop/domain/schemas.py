# muchshop/domain/schemas.py
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import List, Dict
from decimal import Decimal
from datetime import datetime


class OfferType(str, Enum):
    BEST_SELLER = "BEST_SELLER"
    TODAYS_DEAL = "TODAYS_DEAL"
    NEW_ARRIVAL = "NEW_ARRIVAL"
    LIMITED_STOCK = "LIMITED_STOCK"
    FLASH_SALE = "FLASH_SALE"


class OrderType(str, Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"


class OrderStatus(str, Enum):
    NEW = "NEW"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# =====================================================
# CATALOG
# =====================================================
class Offer(BaseModel):
    """Promotional label attached to a product, optionally time-boxed."""

    type: OfferType
    is_active: bool = True
    start_time: datetime | None = None
    end_time: datetime | None = None
    priority: int | None = None


class Product(BaseModel):
    """Read-only view of a catalog product."""

    id: str
    name: str
    category: str | None = None
    price: Decimal = Field(..., ge=0)
    original_price: Decimal | None = None
    discounted_price: Decimal | None = None
    stock: int = Field(0, ge=0)
    unit: str = ""
    image: str | None = None
    visible: bool = True
    offers: List[Offer] = Field(default_factory=list)
    is_best_seller: bool = False
    is_new_arrival: bool = False
    sales_count: int = 0
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class Pricing(BaseModel):
    original_price: Decimal
    current_price: Decimal
    discounted_price: Decimal | None = None
    discount_percent: int = 0
    has_discount: bool = False


class OfferBadge(BaseModel):
    """Display data of an active offer."""

    type: OfferType
    label: str
    icon: str
    color: str
    bg_color: str
    priority: int


class ProductView(BaseModel):
    product: Product
    pricing: Pricing
    badges: List[OfferBadge]


# =====================================================
# SESSION
# =====================================================
class SessionContext(BaseModel):
    """
    Identity supplied by the auth provider for the current request.
    Passed explicitly to cart, wishlist and order operations.
    """

    uid: str | None = None
    email: str | None = None
    is_anonymous: bool = False
    guest_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.uid) and not self.is_anonymous

    @property
    def owner(self) -> str | None:
        """Key of the local cart/wishlist blob for this session."""
        if self.is_authenticated:
            return self.uid
        return self.guest_id or self.uid


# =====================================================
# CART / WISHLIST
# =====================================================
class CartLine(BaseModel):
    product_id: str
    name: str
    unit: str = ""
    image: str | None = None
    price: Decimal
    quantity: int = Field(..., ge=1)

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class ItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, gt=0, description="Quantity to add (must be > 0)")


class QuantityIn(BaseModel):
    """New quantity of a cart line, zero or less removes the line."""

    quantity: int


class MergeIn(BaseModel):
    guest_id: str = Field(..., min_length=1)


class CartOut(BaseModel):
    owner: str | None
    source: str
    items: List[CartLine]
    total: Decimal
    item_count: int
    warnings: List[str] = Field(default_factory=list)


class WishlistOut(BaseModel):
    items: List[str]
    count: int
    source: str
    warnings: List[str] = Field(default_factory=list)


class ToggleOut(WishlistOut):
    in_wishlist: bool


# =====================================================
# CHECKOUT / ORDERS
# =====================================================
class CustomerDetails(BaseModel):
    customer_name: str
    customer_phone: str
    pickup_datetime: datetime | None = None
    delivery_address: str | None = None
    notes: str = ""


class CheckoutIn(CustomerDetails):
    """Checkout form, validated before anything is written."""

    order_type: OrderType

    @field_validator("customer_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please enter your name")
        return v.strip()

    @field_validator("customer_phone")
    @classmethod
    def phone_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Please enter a valid 10-digit phone number")
        return v

    @model_validator(mode="after")
    def fulfilment_details(self):
        if self.order_type == OrderType.PICKUP:
            if self.pickup_datetime is None:
                raise ValueError("Please select pickup date and time")
        elif not (self.delivery_address or "").strip():
            raise ValueError("Please enter your delivery address")
        return self


class OrderLine(BaseModel):
    product_id: str
    name: str
    image: str | None = None
    qty: int
    price: Decimal
    line_total: Decimal


class Totals(BaseModel):
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal


class OrderOut(BaseModel):
    """Schema for an order (response)."""

    id: str
    user_id: str
    user_email: str | None = None
    customer_name: str
    customer_phone: str
    order_type: OrderType
    pickup_datetime: datetime | None = None
    delivery_address: str | None = None
    items: List[OrderLine]
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    status: OrderStatus
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PlaceOrderOut(BaseModel):
    order_id: str
    order: OrderOut


class StatusChangeIn(BaseModel):
    status: OrderStatus


class NotesIn(BaseModel):
    notes: str = Field("", max_length=2000)


class StatusCountsOut(BaseModel):
    counts: Dict[str, int]


class TimeSlot(BaseModel):
    value: str
    label: str
    disabled: bool = False


# =====================================================
# USERS
# =====================================================
class ProfileIn(BaseModel):
    """Profile fields the user can edit, identity comes from the session."""

    name: str = Field("", max_length=100)
    phone: str = ""


class UserRead(BaseModel):
    """Schema for a user profile (response)."""

    uid: str
    name: str
    email: str | None = None
    phone: str = ""
    role: str
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)
