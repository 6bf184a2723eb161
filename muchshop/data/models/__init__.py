#import all models so SQLAlchemy registers them in Base.metadata

from muchshop.data.models.user import UserModel
from muchshop.data.models.product import ProductModel
from muchshop.data.models.cart_item import CartItemModel
from muchshop.data.models.favorite import FavoriteModel
from muchshop.data.models.order import OrderModel

__all__ = ["UserModel", "ProductModel", "CartItemModel", "FavoriteModel", "OrderModel"]
