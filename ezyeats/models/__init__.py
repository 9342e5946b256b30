from ezyeats.models.shop import Shop
from ezyeats.models.menu_item import MenuItem
from ezyeats.models.order import Order, OrderItem

__all__ = [
    "Shop",
    "MenuItem",
    "Order",
    "OrderItem",
]
