from ezyeats.schemas.shop import (
    ShopResponse,
    ShopListResponse,
    MenuItemResponse,
    MenuResponse,
    QRScanRequest,
)
from ezyeats.schemas.cart import (
    CartItemCreate,
    CartLineResponse,
    CartResponse,
    CartQuantityResponse,
)
from ezyeats.schemas.order import (
    OrderItemResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    OrderResponse,
    OrderListResponse,
    CancelOrderResponse,
)
from ezyeats.schemas.feed import (
    FeedEventType,
    OrdersSnapshotEvent,
    FeedErrorEvent,
)

__all__ = [
    "ShopResponse",
    "ShopListResponse",
    "MenuItemResponse",
    "MenuResponse",
    "QRScanRequest",
    "CartItemCreate",
    "CartLineResponse",
    "CartResponse",
    "CartQuantityResponse",
    "OrderItemResponse",
    "PlaceOrderRequest",
    "PlaceOrderResponse",
    "OrderResponse",
    "OrderListResponse",
    "CancelOrderResponse",
    "FeedEventType",
    "OrdersSnapshotEvent",
    "FeedErrorEvent",
]
