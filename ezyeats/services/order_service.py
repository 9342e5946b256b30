"""Order service: turns a cart into a pickup order"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
import logging

from ezyeats.core.datetime_utils import utc_now
from ezyeats.core.exceptions import ValidationError, LiveSyncError, PersistenceError
from ezyeats.core.live_sync import RedisLiveSync, shop_orders_path, customer_orders_path
from ezyeats.core.security import Customer
from ezyeats.models.order import OrderStatus, PickupMode, ASAP_LABEL
from ezyeats.services.cart_store import CartStore
from ezyeats.services.order_store import order_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PickupPreference:
    """When the customer will collect the order"""
    mode: PickupMode = PickupMode.ASAP
    time: Optional[str] = None

    @classmethod
    def from_request(cls, option: str, time: Optional[str] = None) -> "PickupPreference":
        try:
            mode = PickupMode(option)
        except ValueError:
            raise ValidationError(f"Unknown pickup option: {option}")
        return cls(mode=mode, time=time)

    @property
    def label(self) -> str:
        if self.mode == PickupMode.ASAP:
            return ASAP_LABEL
        return (self.time or "").strip()


async def mirror_order(
    live: RedisLiveSync,
    order_id: str,
    shop_id: str,
    customer_id: str,
    record: dict,
    partial: bool = False
) -> int:
    """
    Copy an order (or a partial update) to the shop and customer indexes of
    the live-sync mirror. Failures are logged and swallowed because the
    durable store stays authoritative. Returns how many paths were written.
    """
    written = 0
    for path in (shop_orders_path(shop_id, order_id), customer_orders_path(customer_id, order_id)):
        try:
            if partial:
                await live.update(path, record)
            else:
                await live.write(path, record)
            written += 1
        except LiveSyncError as e:
            logger.error(f"[MIRROR] Failed to write {path}: {e}")
    return written


def _mirror_record(order_id: str, record: dict) -> dict:
    return {
        "id": order_id,
        "customer_id": record["customer_id"],
        "customer_email": record["customer_email"],
        "shop_id": record["shop_id"],
        "shop_name": record["shop_name"],
        "items": [
            {**item, "unit_price": float(item["unit_price"])}
            for item in record["items"]
        ],
        "total_amount": float(record["total_amount"]),
        "status": record["status"].value,
        "pickup_time": record["pickup_time"],
        "special_instructions": record["special_instructions"],
        "created_at": record["created_at"].isoformat(),
        "updated_at": record["updated_at"].isoformat(),
    }


class OrderService:
    """Service for checkout"""

    @staticmethod
    async def _existing_order(
        db: AsyncSession,
        cart: CartStore,
        customer: Customer,
        idempotency_key: str
    ) -> Optional[str]:
        existing = await order_store.find_by_idempotency_key(db, customer.id, idempotency_key)
        if not existing:
            return None

        logger.info(
            f"[ORDER] Duplicate checkout for customer {customer.id} "
            f"(key={idempotency_key}), returning order {existing.id}"
        )
        cart.clear()
        return existing.id

    @staticmethod
    async def place_order(
        db: AsyncSession,
        live: RedisLiveSync,
        cart: CartStore,
        shop: Any,
        customer: Customer,
        pickup: PickupPreference,
        special_instructions: str = "",
        idempotency_key: Optional[str] = None
    ) -> str:
        """
        Create a pending order from the cart and return its id.

        The durable insert must succeed; the live-sync mirror is best effort.
        The cart is cleared only after the durable insert. Without an
        idempotency key every call creates a new order. A repeated key
        returns the first order's id, even once that checkout has emptied
        the cart.
        """
        if idempotency_key:
            existing_id = await OrderService._existing_order(db, cart, customer, idempotency_key)
            if existing_id:
                return existing_id

        if cart.is_empty:
            raise ValidationError("Your cart is empty. Add items to proceed.")

        if shop is None:
            raise ValidationError("Shop information is missing. Please try again.")

        if pickup.mode == PickupMode.CUSTOM and not pickup.label:
            raise ValidationError("Please enter your preferred pickup time.")

        lines = cart.snapshot()
        total_amount = sum((line.subtotal for line in lines), Decimal("0"))
        timestamp = utc_now()

        record = {
            "customer_id": customer.id,
            "customer_email": customer.email,
            "shop_id": str(shop.id),
            "shop_name": shop.name,
            "items": [
                {
                    "item_id": line.item_id,
                    "name": line.name,
                    "unit_price": line.unit_price,
                    "quantity": line.quantity,
                    "image_url": line.image_url,
                }
                for line in lines
            ],
            "total_amount": total_amount,
            "status": OrderStatus.PENDING,
            "pickup_time": pickup.label,
            "special_instructions": special_instructions or "",
            "created_at": timestamp,
            "updated_at": timestamp,
            "idempotency_key": idempotency_key,
        }

        try:
            order_id = await order_store.insert(db, record)
        except IntegrityError as e:
            # A concurrent checkout with the same key committed first
            existing_id = None
            if idempotency_key:
                existing_id = await OrderService._existing_order(db, cart, customer, idempotency_key)
            if not existing_id:
                raise PersistenceError("Failed to save order") from e
            return existing_id

        written = await mirror_order(
            live, order_id, record["shop_id"], customer.id, _mirror_record(order_id, record)
        )

        cart.clear()

        logger.info(
            f"[ORDER] Customer {customer.id} placed order {order_id} at shop {record['shop_id']}, "
            f"total: {total_amount:.2f}, pickup: {record['pickup_time']}, mirrored to {written}/2 paths"
        )
        return order_id


order_service = OrderService()
