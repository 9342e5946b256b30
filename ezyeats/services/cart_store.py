"""In-memory shopping cart bound to a single shop"""
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShopRef:
    id: str
    name: str


@dataclass
class CartLine:
    item_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    image_url: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class CartStore:
    """
    Cart for one customer session.

    All lines belong to the active shop. Adding an item from another shop
    throws the current lines away first, since an order is picked up from
    exactly one shop.
    """

    def __init__(self):
        self._shop: Optional[ShopRef] = None
        self._lines: Dict[str, CartLine] = {}  # insertion ordered, keyed by item id

    @property
    def shop(self) -> Optional[ShopRef]:
        return self._shop

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add_item(self, item: Any, shop: Any) -> CartLine:
        """Add one unit of ``item`` (a menu item) sold by ``shop``"""
        shop_ref = ShopRef(id=str(shop.id), name=shop.name)

        if self._shop and self._shop.id != shop_ref.id:
            logger.info(
                f"[CART] Switching shop {self._shop.id} -> {shop_ref.id}, "
                f"dropping {len(self._lines)} line(s)"
            )
            self._lines.clear()
            self._shop = shop_ref

        if not self._shop:
            self._shop = shop_ref

        item_id = str(item.id)
        line = self._lines.get(item_id)
        if line:
            line.quantity += 1
        else:
            line = CartLine(
                item_id=item_id,
                name=item.name,
                unit_price=Decimal(str(item.price)),
                quantity=1,
                image_url=getattr(item, "image_url", None),
            )
            self._lines[item_id] = line
        return line

    def remove_item(self, item_id: str) -> Optional[CartLine]:
        """Take one unit of ``item_id`` out; returns the line left, if any"""
        line = self._lines.get(item_id)
        if not line:
            return None

        if line.quantity > 1:
            line.quantity -= 1
            return line

        del self._lines[item_id]
        if not self._lines:
            self._shop = None
        return None

    def clear(self):
        self._lines.clear()
        self._shop = None

    def total_price(self) -> Decimal:
        return sum((line.subtotal for line in self._lines.values()), Decimal("0"))

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def quantity_of(self, item_id: str, shop_id: str) -> int:
        """Quantity of ``item_id`` if the cart belongs to ``shop_id``, else 0"""
        if not self._shop or self._shop.id != shop_id:
            return 0
        line = self._lines.get(item_id)
        return line.quantity if line else 0

    def snapshot(self) -> Tuple[CartLine, ...]:
        """Detached copies of the current lines"""
        return tuple(replace(line) for line in self._lines.values())

    def __len__(self):
        return len(self._lines)

    def __repr__(self):
        shop_id = self._shop.id if self._shop else None
        return f"<CartStore(shop={shop_id}, lines={len(self._lines)}, items={self.item_count()})>"


class CartRegistry:
    """Carts of connected customers, owned by the application instance"""

    def __init__(self):
        self._carts: Dict[str, CartStore] = {}

    def get(self, customer_id: str) -> CartStore:
        cart = self._carts.get(customer_id)
        if cart is None:
            cart = CartStore()
            self._carts[customer_id] = cart
            logger.info(f"[CART] Created cart for customer {customer_id}")
        return cart

    def __len__(self):
        return len(self._carts)
