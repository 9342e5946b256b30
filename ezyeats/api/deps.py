from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from ezyeats.core.live_sync import RedisLiveSync, live_sync
from ezyeats.core.security import Customer, customer_from_token
from ezyeats.database import async_session_maker
from ezyeats.services.cart_store import CartStore
from ezyeats.services.order_feed import OrderFeed

security = HTTPBearer(auto_error=False)


async def get_current_customer(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Customer:
    """
    Customer identified by the bearer token issued by the identity provider
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    customer = customer_from_token(credentials.credentials)
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return customer


def get_live_sync() -> RedisLiveSync:
    """Live-sync mirror used for order writes and feeds"""
    return live_sync


def get_order_feed(live: RedisLiveSync = Depends(get_live_sync)) -> OrderFeed:
    return OrderFeed(live, async_session_maker)


def get_cart(
    request: Request,
    customer: Customer = Depends(get_current_customer)
) -> CartStore:
    """The customer's cart, owned by the application's cart registry"""
    return request.app.state.carts.get(customer.id)
