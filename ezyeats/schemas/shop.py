from pydantic import BaseModel, Field
from typing import Optional, List


class ShopResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    location: Optional[str] = None
    image_url: Optional[str] = None
    rating: Optional[float] = None
    is_open: bool
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None

    model_config = {"from_attributes": True}


class ShopListResponse(BaseModel):
    shops: List[ShopResponse]
    total: int


class MenuItemResponse(BaseModel):
    id: str
    shop_id: str
    name: str
    description: Optional[str] = None
    price: float
    category: str
    image_url: Optional[str] = None
    is_available: bool

    model_config = {"from_attributes": True}


class MenuResponse(BaseModel):
    shop: ShopResponse
    categories: List[str] = ["All"]
    items: List[MenuItemResponse] = []


class QRScanRequest(BaseModel):
    """Raw text decoded from a shop QR code"""
    payload: str = Field(..., min_length=1, max_length=500)
