"""
WebSocket order feed event schemas
"""
from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
from enum import Enum
from ezyeats.core.datetime_utils import utc_now
from ezyeats.schemas.order import OrderResponse


class FeedEventType(str, Enum):
    """Events pushed over /ws/orders"""
    CONNECTED = "connected"
    ORDERS_SNAPSHOT = "orders.snapshot"
    ERROR = "error"


class OrdersSnapshotEvent(BaseModel):
    """Full, sorted and filtered order list for one customer"""
    event: FeedEventType = FeedEventType.ORDERS_SNAPSHOT
    timestamp: datetime = Field(default_factory=utc_now)
    filter: str
    orders: List[OrderResponse]


class FeedErrorEvent(BaseModel):
    event: FeedEventType = FeedEventType.ERROR
    timestamp: datetime = Field(default_factory=utc_now)
    message: str
