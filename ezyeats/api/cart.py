"""Cart API endpoints for the mobile app"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from ezyeats.database import get_db
from ezyeats.api.deps import get_cart, get_current_customer
from ezyeats.core.exceptions import InvalidStateError
from ezyeats.core.security import Customer
from ezyeats.services.cart_store import CartStore
from ezyeats.services.shop_service import shop_service
from ezyeats.schemas.cart import (
    CartItemCreate,
    CartLineResponse,
    CartQuantityResponse,
    CartResponse,
    CartShop,
)
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


def build_cart_response(cart: CartStore) -> CartResponse:
    return CartResponse(
        shop=CartShop(id=cart.shop.id, name=cart.shop.name) if cart.shop else None,
        items=[
            CartLineResponse(
                item_id=line.item_id,
                name=line.name,
                unit_price=float(line.unit_price),
                quantity=line.quantity,
                image_url=line.image_url,
                subtotal=float(line.subtotal),
            )
            for line in cart.lines
        ],
        total_items=cart.item_count(),
        total_price=float(cart.total_price()),
    )


@router.get("", response_model=CartResponse)
async def get_cart_contents(cart: CartStore = Depends(get_cart)):
    """Get the customer's cart with totals"""
    return build_cart_response(cart)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    item_data: CartItemCreate,
    customer: Customer = Depends(get_current_customer),
    cart: CartStore = Depends(get_cart),
    db: AsyncSession = Depends(get_db)
):
    """
    Add one unit of a menu item.
    Adding from a different shop empties the cart first.
    """
    shop = await shop_service.get_shop(db, item_data.shop_id)
    item = await shop_service.get_menu_item(db, shop.id, item_data.item_id)
    if not item.is_available:
        raise InvalidStateError(f"{item.name} is currently unavailable")

    cart.add_item(item, shop)
    logger.info(f"[CART] Customer {customer.id} added {item.id} from shop {shop.id}")
    return build_cart_response(cart)


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_from_cart(
    item_id: str,
    customer: Customer = Depends(get_current_customer),
    cart: CartStore = Depends(get_cart)
):
    """Remove one unit of an item; unknown items are ignored"""
    cart.remove_item(item_id)
    logger.info(f"[CART] Customer {customer.id} removed one {item_id}")
    return build_cart_response(cart)


@router.get("/items/{item_id}/quantity", response_model=CartQuantityResponse)
async def get_item_quantity(
    item_id: str,
    shop_id: str = Query(..., min_length=1),
    cart: CartStore = Depends(get_cart)
):
    """Quantity badge for a menu item of the shop being browsed"""
    return CartQuantityResponse(
        item_id=item_id,
        shop_id=shop_id,
        quantity=cart.quantity_of(item_id, shop_id),
    )


@router.delete("")
async def clear_cart(
    customer: Customer = Depends(get_current_customer),
    cart: CartStore = Depends(get_cart)
):
    """Empty the cart"""
    cart.clear()
    logger.info(f"[CART] Customer {customer.id} cleared cart")
    return {"message": "Cart cleared successfully"}
