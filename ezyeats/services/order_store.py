"""Durable order store (source of truth) on the SQL database"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from ezyeats.models.order import Order, OrderItem, OrderStatus
from ezyeats.core.exceptions import PersistenceError, NotFoundError
from typing import Optional, List
import logging

logger = logging.getLogger(__name__)


def serialize_order(order: Order) -> dict:
    """JSON-ready record used for the live-sync mirror"""
    status = order.status.value if isinstance(order.status, OrderStatus) else str(order.status)
    return {
        "id": order.id,
        "customer_id": order.customer_id,
        "customer_email": order.customer_email,
        "shop_id": order.shop_id,
        "shop_name": order.shop_name,
        "items": [
            {
                "item_id": item.item_id,
                "name": item.name,
                "unit_price": float(item.unit_price),
                "quantity": item.quantity,
                "image_url": item.image_url,
            }
            for item in order.items
        ],
        "total_amount": float(order.total_amount),
        "status": status,
        "pickup_time": order.pickup_time,
        "special_instructions": order.special_instructions,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }


class OrderStore:
    """Insert, update and query order documents"""

    @staticmethod
    async def insert(db: AsyncSession, record: dict) -> str:
        """Persist a new order record and return its generated id"""
        fields = dict(record)
        items = fields.pop("items", [])

        order = Order(**fields)
        order.items = [
            OrderItem(position=position, **item)
            for position, item in enumerate(items)
        ]
        try:
            db.add(order)
            await db.commit()
        except IntegrityError:
            # Unique idempotency key already taken; the caller resolves it
            await db.rollback()
            logger.warning(
                f"[ORDER] Insert conflict for customer {fields.get('customer_id')} "
                f"(key={fields.get('idempotency_key')})"
            )
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"[ORDER] Failed to insert order for customer {fields.get('customer_id')}: {e}", exc_info=True)
            raise PersistenceError("Failed to save order") from e

        logger.info(f"[ORDER] Stored order {order.id} ({len(items)} line(s))")
        return order.id

    @staticmethod
    async def update(db: AsyncSession, order_id: str, fields: dict) -> Order:
        """Apply a partial update to an existing order"""
        try:
            order = await db.get(Order, order_id)
            if not order:
                raise NotFoundError(f"Order {order_id} not found")

            for field, value in fields.items():
                setattr(order, field, value)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"[ORDER] Failed to update order {order_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to update order") from e

        return order

    @staticmethod
    async def get(db: AsyncSession, order_id: str) -> Optional[Order]:
        try:
            result = await db.execute(
                select(Order)
                .options(selectinload(Order.items))
                .where(Order.id == order_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"[ORDER] Failed to load order {order_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load order") from e

    @staticmethod
    async def query(
        db: AsyncSession,
        customer_id: Optional[str] = None,
        shop_id: Optional[str] = None,
    ) -> List[Order]:
        """
        Orders matching the given filters, unsorted.
        Callers sort client-side by creation time.
        """
        query = select(Order).options(selectinload(Order.items))

        if customer_id:
            query = query.where(Order.customer_id == customer_id)
        if shop_id:
            query = query.where(Order.shop_id == shop_id)

        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"[ORDER] Order query failed (customer={customer_id}, shop={shop_id}): {e}", exc_info=True)
            raise PersistenceError("Failed to load orders") from e

    @staticmethod
    async def find_by_idempotency_key(
        db: AsyncSession,
        customer_id: str,
        idempotency_key: str
    ) -> Optional[Order]:
        try:
            result = await db.execute(
                select(Order).where(
                    Order.customer_id == customer_id,
                    Order.idempotency_key == idempotency_key
                )
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"[ORDER] Idempotency lookup failed for customer {customer_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load orders") from e


order_store = OrderStore()
