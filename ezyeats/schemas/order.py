"""Order schemas"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from ezyeats.models.order import OrderStatus


class OrderItemResponse(BaseModel):
    """Order line, frozen at checkout"""
    item_id: str
    name: str
    unit_price: float
    quantity: int
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}


class PlaceOrderRequest(BaseModel):
    """Checkout form"""
    pickup_option: str = Field(default="asap", pattern="^(asap|custom)$")
    pickup_time: Optional[str] = Field(default=None, max_length=50)
    special_instructions: str = Field(default="", max_length=1000)


class PlaceOrderResponse(BaseModel):
    order_id: str
    status: OrderStatus
    total_amount: float
    message: str = "Order placed successfully"


class OrderResponse(BaseModel):
    id: str
    customer_id: str
    customer_email: Optional[str] = None
    shop_id: str
    shop_name: str
    items: List[OrderItemResponse] = []
    total_amount: float
    status: OrderStatus
    pickup_time: str = "ASAP"
    special_instructions: str = ""
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    total: int
    filter: str


class CancelOrderResponse(BaseModel):
    order_id: str
    status: OrderStatus
    message: str = "Order cancelled successfully"
