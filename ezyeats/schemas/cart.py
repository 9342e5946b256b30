"""Cart schemas"""
from pydantic import BaseModel, Field
from typing import Optional, List


class CartItemCreate(BaseModel):
    """Add one unit of a menu item to the cart"""
    shop_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)


class CartShop(BaseModel):
    id: str
    name: str


class CartLineResponse(BaseModel):
    item_id: str
    name: str
    unit_price: float
    quantity: int
    image_url: Optional[str] = None
    subtotal: float = 0.0  # unit_price * quantity


class CartResponse(BaseModel):
    shop: Optional[CartShop] = None
    items: List[CartLineResponse] = []
    total_items: int = 0
    total_price: float = 0.0


class CartQuantityResponse(BaseModel):
    item_id: str
    shop_id: str
    quantity: int = 0
