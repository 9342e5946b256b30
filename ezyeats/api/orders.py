"""Orders API endpoints for the mobile app"""
from fastapi import APIRouter, Depends, HTTPException, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from ezyeats.config import settings
from ezyeats.database import get_db
from ezyeats.api.deps import get_cart, get_current_customer, get_live_sync, get_order_feed
from ezyeats.core.exceptions import EzyeatsError, NotFoundError, ValidationError
from ezyeats.core.live_sync import RedisLiveSync
from ezyeats.core.rate_limit import limiter
from ezyeats.core.security import Customer
from ezyeats.services.cart_store import CartStore
from ezyeats.services.order_feed import OrderFeed, cancel_order, filter_orders, normalize_order
from ezyeats.services.order_service import PickupPreference, order_service
from ezyeats.services.order_store import order_store, serialize_order
from ezyeats.schemas.order import (
    CancelOrderResponse,
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
)
from typing import Optional
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=PlaceOrderResponse, status_code=201)
@limiter.limit(settings.ORDER_RATE_LIMIT)
async def place_order(
    request: Request,
    order_data: PlaceOrderRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=200),
    customer: Customer = Depends(get_current_customer),
    cart: CartStore = Depends(get_cart),
    live: RedisLiveSync = Depends(get_live_sync),
    db: AsyncSession = Depends(get_db)
):
    """
    Place a pickup order from the cart.
    Resending the same Idempotency-Key returns the order created first.
    """
    try:
        logger.info(f"[ORDER] Checkout for customer {customer.id}, pickup: {order_data.pickup_option}")
        pickup = PickupPreference.from_request(order_data.pickup_option, order_data.pickup_time)

        order_id = await order_service.place_order(
            db,
            live,
            cart,
            cart.shop,
            customer,
            pickup,
            special_instructions=order_data.special_instructions,
            idempotency_key=idempotency_key
        )

        order = await order_store.get(db, order_id)
        return PlaceOrderResponse(
            order_id=order.id,
            status=order.status,
            total_amount=float(order.total_amount)
        )
    except (EzyeatsError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[ORDER] Checkout failed for customer {customer.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to place order. Please try again.")


@router.get("", response_model=OrderListResponse)
async def get_my_orders(
    order_filter: str = Query("all", alias="filter"),
    customer: Customer = Depends(get_current_customer),
    feed: OrderFeed = Depends(get_order_feed),
    db: AsyncSession = Depends(get_db)
):
    """Customer's orders, newest first, narrowed to a status tab"""
    orders = filter_orders(await feed.fetch_orders(customer.id, db), order_filter)
    return OrderListResponse(orders=orders, total=len(orders), filter=order_filter)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db)
):
    """Get one of the customer's orders"""
    order = await order_store.get(db, order_id)
    if not order or order.customer_id != customer.id:
        raise NotFoundError("Order not found")
    return normalize_order(serialize_order(order))


@router.post("/{order_id}/cancel", response_model=CancelOrderResponse)
async def cancel_my_order(
    order_id: str,
    customer: Customer = Depends(get_current_customer),
    feed: OrderFeed = Depends(get_order_feed),
    live: RedisLiveSync = Depends(get_live_sync),
    db: AsyncSession = Depends(get_db)
):
    """Cancel a pending order"""
    if not order_id.strip():
        raise ValidationError("Order id is required")

    orders = await feed.fetch_orders(customer.id, db)
    new_status = await cancel_order(db, live, order_id, orders)
    return CancelOrderResponse(order_id=order_id, status=new_status)
