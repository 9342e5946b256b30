"""
Customer order feed.

Listens on the customer's index in the live-sync mirror and hands the
callback a normalized list of orders, newest first. When the mirror is
unreachable the feed answers once from the durable store instead.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union
import inspect
import logging

from ezyeats.core.datetime_utils import utc_now, to_instant
from ezyeats.core.exceptions import InvalidStateError, LiveSyncError, NotFoundError, ValidationError
from ezyeats.core.live_sync import LiveSubscription, RedisLiveSync, customer_orders_path
from ezyeats.database import async_session_maker
from ezyeats.models.order import ACTIVE_STATUSES, Order, OrderStatus
from ezyeats.schemas.order import OrderItemResponse, OrderResponse
from ezyeats.services.order_service import mirror_order
from ezyeats.services.order_store import order_store, serialize_order

logger = logging.getLogger(__name__)

OrdersCallback = Callable[[List[OrderResponse]], Any]


class OrderFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _pick(record: Mapping, *keys: str, default: Any = None) -> Any:
    """First present key; mirror records written by older clients use camelCase"""
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return default


def normalize_order(record: Mapping, order_id: Optional[str] = None) -> OrderResponse:
    """Build an OrderResponse from a stored record of either store"""
    raw_items = record.get("items") or []
    if not isinstance(raw_items, (list, tuple)):
        raise ValueError(f"items must be a list, got {type(raw_items).__name__}")
    if not all(isinstance(item, Mapping) for item in raw_items):
        raise ValueError("every order item must be a mapping")

    items = [
        OrderItemResponse(
            item_id=str(_pick(item, "item_id", "itemId", "id", default="")),
            name=item.get("name", ""),
            unit_price=float(_pick(item, "unit_price", "unitPrice", "price", default=0)),
            quantity=int(item.get("quantity", 1)),
            image_url=_pick(item, "image_url", "imageUrl", "image"),
        )
        for item in raw_items
    ]

    return OrderResponse(
        id=str(_pick(record, "id", default=order_id)),
        customer_id=str(_pick(record, "customer_id", "customerId", default="")),
        customer_email=_pick(record, "customer_email", "customerEmail"),
        shop_id=str(_pick(record, "shop_id", "shopId", default="")),
        shop_name=_pick(record, "shop_name", "shopName", default=""),
        items=items,
        total_amount=float(_pick(record, "total_amount", "totalAmount", default=0)),
        status=OrderStatus(_pick(record, "status", default=OrderStatus.PENDING.value)),
        pickup_time=_pick(record, "pickup_time", "pickupTime", default="ASAP"),
        special_instructions=_pick(record, "special_instructions", "specialInstructions", default=""),
        created_at=to_instant(_pick(record, "created_at", "createdAt")),
        updated_at=to_instant(_pick(record, "updated_at", "updatedAt")),
    )


def sort_orders(orders: Iterable[OrderResponse]) -> List[OrderResponse]:
    """Newest first; ties keep their incoming order"""
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


def normalize_orders(value: Union[Mapping, Sequence, None]) -> List[OrderResponse]:
    """
    Normalize the full value of a customer index (``{order_id: record}``),
    or a list of durable Order rows / records, into a sorted order list.
    Records that cannot be read are skipped.
    """
    if not value:
        return []

    if isinstance(value, Mapping):
        entries = list(value.items())
    else:
        entries = [(None, record) for record in value]

    orders = []
    for key, record in entries:
        if isinstance(record, Order):
            record = serialize_order(record)
        if not isinstance(record, Mapping):
            logger.warning(f"[FEED] Skipping unreadable order record {key!r}")
            continue
        try:
            orders.append(normalize_order(record, key))
        except (ValueError, TypeError) as e:
            logger.warning(f"[FEED] Skipping malformed order record {key!r}: {e}")

    return sort_orders(orders)


def filter_orders(
    orders: Sequence[OrderResponse],
    predicate: Union[OrderFilter, str] = OrderFilter.ALL
) -> List[OrderResponse]:
    """Subset of ``orders`` for a status tab, relative order preserved"""
    try:
        predicate = OrderFilter(predicate)
    except ValueError:
        raise ValidationError(f"Unknown order filter: {predicate}")

    if predicate == OrderFilter.ACTIVE:
        return [order for order in orders if order.status in ACTIVE_STATUSES]
    if predicate == OrderFilter.COMPLETED:
        return [order for order in orders if order.status == OrderStatus.COMPLETED]
    if predicate == OrderFilter.CANCELLED:
        return [order for order in orders if order.status == OrderStatus.CANCELLED]
    return list(orders)


async def _notify(callback: OrdersCallback, orders: List[OrderResponse]):
    result = callback(orders)
    if inspect.isawaitable(result):
        await result


class FeedSubscription:
    """Subscription handle; usable as ``async with`` so it is always released"""

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        self._live: Optional[LiveSubscription] = None
        self._closed = False

    def attach(self, live: LiveSubscription):
        self._live = live

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_live(self) -> bool:
        """False when the feed fell back to a one-shot database read"""
        return self._live is not None and not self._closed

    async def close(self):
        if self._closed:
            return
        self._closed = True
        if self._live:
            await self._live.close()
        logger.info(f"[FEED] Unsubscribed customer {self.customer_id}")

    async def __aenter__(self) -> "FeedSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class OrderFeed:
    """Live order list for one customer at a time"""

    def __init__(
        self,
        live: RedisLiveSync,
        session_factory: async_sessionmaker = async_session_maker
    ):
        self._live = live
        self._session_factory = session_factory

    async def subscribe(self, customer_id: str, on_update: OrdersCallback) -> FeedSubscription:
        """
        Deliver the customer's orders to ``on_update`` on every mirror change.
        Falls back to a single durable-store read when no listener can be
        attached; PersistenceError from that read propagates.
        """
        subscription = FeedSubscription(customer_id)

        async def handle(value):
            if subscription.closed:
                return
            orders = normalize_orders(value)
            logger.info(f"[FEED] {len(orders)} order(s) for customer {customer_id}")
            await _notify(on_update, orders)

        try:
            live = await self._live.subscribe(customer_orders_path(customer_id), handle)
        except LiveSyncError as e:
            logger.warning(f"[FEED] Live listener unavailable for customer {customer_id}, reading database: {e}")
            orders = await self.fetch_orders(customer_id)
            await _notify(on_update, orders)
            return subscription

        subscription.attach(live)
        logger.info(f"[FEED] Subscribed customer {customer_id}")
        return subscription

    async def fetch_orders(self, customer_id: str, db: Optional[AsyncSession] = None) -> List[OrderResponse]:
        """One-shot durable read, sorted like the live feed"""
        if db is not None:
            return normalize_orders(await order_store.query(db, customer_id=customer_id))

        async with self._session_factory() as session:
            return normalize_orders(await order_store.query(session, customer_id=customer_id))


async def cancel_order(
    db: AsyncSession,
    live: RedisLiveSync,
    order_id: str,
    orders: Sequence[OrderResponse]
) -> OrderStatus:
    """
    Cancel a pending order from ``orders``. The durable update must succeed;
    the mirror update is best effort. Returns the new status so callers can
    update their local list before the feed catches up.
    """
    order = next((candidate for candidate in orders if candidate.id == order_id), None)
    if not order:
        raise NotFoundError("Order not found")

    if order.status != OrderStatus.PENDING:
        raise InvalidStateError("Only pending orders can be cancelled")

    timestamp = utc_now()
    await order_store.update(db, order_id, {"status": OrderStatus.CANCELLED, "updated_at": timestamp})

    await mirror_order(
        live,
        order_id,
        order.shop_id,
        order.customer_id,
        {"status": OrderStatus.CANCELLED.value, "updated_at": timestamp.isoformat()},
        partial=True
    )

    logger.info(f"[ORDER] Order {order_id} cancelled by customer {order.customer_id}")
    return OrderStatus.CANCELLED
